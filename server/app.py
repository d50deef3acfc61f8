"""FastAPI app exposing report listing and detail over HTTP."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query, Request

from report_scraper import (
    MissingCredentialsError,
    build_report_url,
    ensure_session,
    fetch_report_detail,
    fetch_reports,
    open_session,
)

from .config import settings
from .schemas import ReportDetailOut, ReportSummaryOut

log = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Hold one browser session for the lifetime of the server."""
    config = settings.scrape_config()
    credentials = settings.credentials()
    if not credentials.complete:
        raise MissingCredentialsError()

    app.state.config = config
    async with open_session(config) as session:
        if not await ensure_session(session, credentials, config):
            raise RuntimeError(f'Login failed; see screenshots in {config.diagnostics_dir}/')
        app.state.session = session
        log.info('Server ready on http://%s:%d', settings.host, settings.port)
        log.info('  GET /reports?status=%s', settings.default_status)
        log.info('  GET /reports/{id}')
        yield
        app.state.session = None


app = FastAPI(title='Bounty Report Scraper', lifespan=lifespan)


def get_session(request: Request):
    """Session opened at startup."""
    session = getattr(request.app.state, 'session', None)
    if session is None:
        raise HTTPException(status_code=503, detail='Browser session not ready')
    return session


@app.get('/health')
def health() -> dict:
    """Health check."""
    return {'status': 'ok'}


@app.get('/reports', response_model=list[ReportSummaryOut])
async def reports_list(request: Request, status: str = Query(default=settings.default_status)):
    """List reports by status ('all' for no filter)."""
    session = get_session(request)
    try:
        result = await fetch_reports(session, status, request.app.state.config)
    except Exception as exc:
        log.error('Error in GET /reports: %s', exc)
        raise HTTPException(status_code=500, detail='Failed to fetch reports')
    return [report.to_dict() for report in result.value]


@app.get('/reports/{report_id}', response_model=ReportDetailOut)
async def report_detail(report_id: str, request: Request):
    """Markdown for one report."""
    session = get_session(request)
    config = request.app.state.config
    try:
        result = await fetch_report_detail(session, build_report_url(config, report_id), config)
    except Exception as exc:
        log.error('Error in GET /reports/%s: %s', report_id, exc)
        raise HTTPException(status_code=500, detail='Failed to fetch report detail')

    if not result.value:
        raise HTTPException(status_code=404, detail='Report not found or content could not be extracted')
    return {'id': report_id, 'markdown': result.value}


if __name__ == '__main__':
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
