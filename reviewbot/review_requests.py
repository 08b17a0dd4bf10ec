"""
Pydantic models for Review Board review request payloads.

Review Board API documentation:
https://www.reviewboard.org/docs/manual/latest/webapi/2.0/resources/review-request-list/
"""

from datetime import datetime, timezone
from typing import Any, List, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .utils.exceptions import ReviewRequestParseError
from .utils.logger import get_logger

logger = get_logger(__name__)


class ReviewRequest(BaseModel):
    """
    A review request as returned by the review-requests list endpoint.

    The submitter's display name is lifted out of ``links.submitter.title``.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int = Field(..., description="Review request ID")
    submitter: str = Field(..., description="Submitter display name")
    time_added: datetime = Field(..., description="Creation timestamp")
    last_updated: datetime = Field(..., description="Last update timestamp")
    absolute_url: str = Field(..., description="Review request web URL")
    summary: str = Field(..., description="One-line summary")
    status: str = Field(..., description="Status (pending, submitted, discarded)")

    @model_validator(mode="before")
    @classmethod
    def extract_submitter(cls, data: Any) -> Any:
        """Flatten ``links.submitter.title`` into ``submitter``."""
        if isinstance(data, dict) and "submitter" not in data:
            try:
                title = data["links"]["submitter"]["title"]
            except (KeyError, TypeError):
                raise ValueError("missing links.submitter.title")
            data = {**data, "submitter": title}
        return data

    @field_validator("time_added", "last_updated")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Treat offset-less timestamps as UTC so they compare with aware ones."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


class ReviewRequestList(BaseModel):
    """Envelope of the review-requests list endpoint."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    review_requests: List[ReviewRequest] = Field(..., description="Review requests, newest first")
    total_results: int | None = Field(None, description="Total matching requests on the server")


def decode_review_request_list(body: Union[bytes, str]) -> ReviewRequestList:
    """
    Decode a review-requests JSON payload.

    Args:
        body: Raw JSON response body

    Returns:
        Decoded envelope; request order matches the payload

    Raises:
        ReviewRequestParseError: If the body is not valid JSON or any
            element is malformed
    """
    try:
        decoded = ReviewRequestList.model_validate_json(body)
    except ValidationError as e:
        errors = [
            {"loc": ".".join(str(part) for part in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise ReviewRequestParseError(
            f"Failed to parse review requests: {e.error_count()} error(s)",
            errors=errors,
            payload_size=len(body)
        ) from e

    logger.debug(
        f"Parsed {len(decoded.review_requests)} review requests",
        extra={
            "count": len(decoded.review_requests),
            "total_results": decoded.total_results
        }
    )
    return decoded


def decode_review_requests(body: Union[bytes, str]) -> List[ReviewRequest]:
    """Decode a review-requests payload into its list of requests."""
    return list(decode_review_request_list(body).review_requests)
