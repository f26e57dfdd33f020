"""OvenMediaEngine Admission Webhook endpoint."""

import logging
import secrets

from fastapi import APIRouter, BackgroundTasks

from .. import admission
from ..config import config
from .dependencies import get_relay_service
from .models import OMEAdmissionRequest, OMEAdmissionResponse, OMERequestInfo

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["admission"])


@router.post(
    "/admission",
    response_model=OMEAdmissionResponse,
    response_model_exclude_none=True,
)
async def admission_webhook(payload: OMEAdmissionRequest, background_tasks: BackgroundTasks):
    """
    OvenMediaEngine Admission Webhook endpoint.

    This endpoint implements the OvenMediaEngine Admission Webhooks spec:
    https://docs.ovenmediaengine.com/access-control/admission-webhooks

    An opening incoming stream whose name is a URL-encoded RTMP URL is
    admitted, and once the response is sent the stream's push-publish is
    pointed at that URL. A closing incoming stream schedules a cleanup of
    pushes whose source stream is gone.

    Returns:
        - For opening: {"allowed": true/false, "reason": "...", "lifetime": 0}
        - Otherwise: {}
    """
    relay_service = get_relay_service()

    event_id = secrets.token_hex(4)
    request = payload.request or OMERequestInfo()
    logger.info(
        f"[{event_id}] Admission request: {request.direction} {request.protocol} "
        f"{request.status}"
    )

    decision = admission.evaluate(
        request.direction,
        request.status,
        request.url,
        config.incoming_app,
        event_id,
    )

    if decision.target is not None:
        background_tasks.add_task(
            relay_service.publish, event_id, decision.stream_name, decision.target.url
        )
    elif decision.schedule_sweep:
        relay_service.schedule_sweep()

    return OMEAdmissionResponse(
        allowed=decision.allowed,
        lifetime=decision.lifetime,
        reason=decision.reason,
    )
