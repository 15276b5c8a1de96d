import logging

from application.rest.routers.errors import error_response
from application.rest.schemas.output.common_output import HealthResponse
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from utils.dependencies import get_db

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get(
    path="/health",
    description="Health check endpoint for service monitoring, including database reachability.",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    responses={
        status.HTTP_503_SERVICE_UNAVAILABLE: error_response(
            "Database unreachable.", "Database unavailable"
        ),
    },
)
async def health_check(db: Session = Depends(get_db)) -> HealthResponse:
    """Health check endpoint for service monitoring.

    Returns:
        HealthResponse: Service status information containing status and service name.

    Raises:
        HTTPException: 503 if the database does not answer.

    Example:
        >>> response = await health_check(db)
        >>> print(response)
        HealthResponse(status="healthy", service="notes-service")
    """
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Health check failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database unavailable"
        ) from e
    return HealthResponse(status="healthy", service="notes-service")
