"""FastAPI router for upload planning.

``POST /uploads/plan`` is a dry run: it drives an ``UploadIterator`` over the
requested files exactly as the uploader would, records where every file would
go, and closes each element without sending anything.
"""
import logging

from fastapi import APIRouter, HTTPException

from batchup.peers.manager import get_peer_manager
from batchup.routing.expr import RoutingCompileError, compile_program

from .iterator import UploadIterator
from .schemas import PlanItem, PlanRequest, PlanResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/uploads", tags=["uploads"])


@router.post("/plan", response_model=PlanResponse)
def plan_uploads(request: PlanRequest) -> PlanResponse:
    """Resolve destinations for a batch of files without uploading them.

    Args:
        request: Files plus routing options (static chat/topic or a routing
            expression in ``to``).

    Returns:
        PlanResponse with one item per file that resolved. When iteration
        stops early, ``complete`` is False and ``error`` describes the
        failure; items resolved before it are still returned.

    Raises:
        HTTPException 400: If the routing expression does not compile.
        HTTPException 503: If no peer manager is configured.
    """
    manager = get_peer_manager()
    if manager is None:
        raise HTTPException(status_code=503, detail="Peer manager is not initialized")

    program = None
    if not request.chat and request.to:
        try:
            program = compile_program(request.to)
        except RoutingCompileError as e:
            raise HTTPException(status_code=400, detail=str(e))

    it = UploadIterator.create(
        request.files,
        manager,
        program=program,
        chat=request.chat,
        topic=request.topic,
        as_photo=request.photo,
        remove=request.remove,
    )

    items = []
    while it.next():
        with it.value() as elem:
            items.append(
                PlanItem(
                    path=elem.file.file.name,
                    size=elem.file.size,
                    peer_id=elem.to.id,
                    peer_name=elem.to.display_name,
                    thread=elem.thread,
                    thumb=elem.thumb.file.name if elem.thumb is not None else None,
                    as_photo=elem.as_photo,
                    remove=elem.remove,
                )
            )

    err = it.err()
    if err is not None:
        logger.info(f"Upload plan stopped after {len(items)} of {len(it)} files: {err}")
        return PlanResponse(items=items, complete=False, error=str(err))

    logger.info(f"Upload plan resolved {len(items)} files")
    return PlanResponse(items=items)
