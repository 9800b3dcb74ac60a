import logging
from typing import Optional
from urllib.parse import urlencode
from fastapi import APIRouter, Depends, Form, HTTPException, Request
from fastapi.responses import RedirectResponse, Response
from dependencies import get_client
from models.schemas import CreateCallRequest
from routers.pages import templates
from services.api import CallApiClient, RequestError, ValidationError
from services.history import TABS, call_stats, filter_calls, parse_calls

router = APIRouter()
logger = logging.getLogger(__name__)

def _login_redirect(client: CallApiClient) -> Optional[RedirectResponse]:
    if not client.session.is_authenticated():
        return RedirectResponse(client.login_route, status_code=303)
    return None

def _back_to_history(message: str) -> RedirectResponse:
    return RedirectResponse("/call-history?" + urlencode({"message": message}), status_code=303)

def _configuration_form(request: Request, error=None, success=None, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "configuration.html",
        {"title": "Call Configuration", "logged_in": True, "error": error, "success": success},
        status_code=status_code
    )

async def _history_context(client: CallApiClient, tab: str, search: str) -> dict:
    if tab not in TABS:
        tab = "completed"
    try:
        calls = parse_calls(await client.get_calls())
        error = None
    except RequestError as e:
        logger.error(f"Failed to fetch call history: {str(e)}")
        calls = []
        error = "Failed to fetch call history"
    return {
        "tab": tab,
        "search": search,
        "stats": call_stats(calls),
        "visible": filter_calls(calls, tab, search),
        "error": error,
    }

@router.get("/call-configuration")
def show_configuration(request: Request, client: CallApiClient = Depends(get_client)):
    return _login_redirect(client) or _configuration_form(request)

@router.post("/call-configuration")
async def start_call(
    request: Request,
    phone_number: str = Form(""),
    base_script: str = Form(""),
    client: CallApiClient = Depends(get_client)
):
    redirect = _login_redirect(client)
    if redirect:
        return redirect
    # The origin number field is not offered on the form
    call_request = CreateCallRequest(
        legacy_phone_number=phone_number.strip(),
        from_number="",
        base_script=base_script.strip()
    )
    try:
        call = await client.create_call(call_request)
    except ValidationError as e:
        return _configuration_form(request, error=str(e), status_code=422)
    except RequestError as e:
        logger.error(f"Call creation failed: {str(e)}")
        return _configuration_form(request, error="Failed to start call. Please try again.", status_code=502)

    logger.info(f"Call started: {call.get('id') if isinstance(call, dict) else call}")
    return _configuration_form(
        request,
        success="Call started successfully! You can view the progress in Call History."
    )

@router.get("/call-history")
async def show_history(
    request: Request,
    tab: str = "completed",
    search: str = "",
    message: Optional[str] = None,
    client: CallApiClient = Depends(get_client)
):
    redirect = _login_redirect(client)
    if redirect:
        return redirect
    context = await _history_context(client, tab, search)
    context.update({
        "title": "Call History",
        "logged_in": True,
        "message": message,
        "poll_interval_ms": int(request.app.state.poll_interval * 1000),
    })
    return templates.TemplateResponse(request, "history.html", context)

@router.get("/call-history/table")
async def history_table(
    request: Request,
    tab: str = "completed",
    search: str = "",
    client: CallApiClient = Depends(get_client)
):
    """Stats, tabs and rows of the history view, fetched by the page on a timer."""
    redirect = _login_redirect(client)
    if redirect:
        return redirect
    context = await _history_context(client, tab, search)
    return templates.TemplateResponse(request, "history_table.html", context)

@router.post("/call-history/clear")
async def clear_calls(client: CallApiClient = Depends(get_client)):
    redirect = _login_redirect(client)
    if redirect:
        return redirect
    try:
        result = await client.clear_all_calls()
    except RequestError as e:
        logger.error(f"Failed to clear calls: {str(e)}")
        return _back_to_history("Failed to clear calls")
    return _back_to_history(f"Cleared {result.deleted_count} calls successfully")

@router.post("/call-history/sync")
async def sync_calls(client: CallApiClient = Depends(get_client)):
    redirect = _login_redirect(client)
    if redirect:
        return redirect
    try:
        result = await client.sync_with_bland_ai()
    except RequestError as e:
        logger.error(f"Sync with Bland.ai failed: {str(e)}")
        if e.status == 500:
            return _back_to_history("Server error during sync. Check backend logs.")
        return _back_to_history(f"Failed to sync with Bland.ai: {str(e)}")
    return _back_to_history(
        f"Sync completed: {result.synced_count} synced, "
        f"{result.created_count} created, {result.updated_count} updated"
    )

@router.get("/call-history/{call_id}")
async def show_details(request: Request, call_id: int, client: CallApiClient = Depends(get_client)):
    redirect = _login_redirect(client)
    if redirect:
        return redirect
    try:
        details = await client.get_call_details(call_id)
    except RequestError as e:
        logger.error(f"Failed to load call details for {call_id}: {str(e)}")
        raise HTTPException(status_code=e.status or 502, detail="Failed to load call details")
    return templates.TemplateResponse(
        request,
        "details.html",
        {"title": "Call Details", "logged_in": True, "call_id": call_id, "details": details or {}}
    )

@router.get("/call-history/{call_id}/pdf")
async def download_pdf(call_id: int, client: CallApiClient = Depends(get_client)):
    redirect = _login_redirect(client)
    if redirect:
        return redirect
    try:
        content = await client.download_pdf(call_id)
    except RequestError as e:
        logger.error(f"Failed to download PDF for {call_id}: {str(e)}")
        raise HTTPException(status_code=e.status or 502, detail="Failed to download PDF")
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="call-{call_id}.pdf"'}
    )
