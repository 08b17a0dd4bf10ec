"""
Test fixtures and utilities for the review bot tests
"""
import json
from unittest.mock import Mock


T0 = "2024-03-01T09:00:00Z"
T1 = "2024-03-01T10:00:00Z"
T2 = "2024-03-01T11:00:00Z"
T3 = "2024-03-01T12:00:00Z"


def make_rr(rr_id, last_updated, submitter="Jane Doe", summary=None, status="pending"):
    """Review request as returned by the review-requests endpoint"""
    return {
        "id": rr_id,
        "links": {
            "submitter": {
                "href": f"https://reviews.apache.org/api/users/{submitter.lower().replace(' ', '')}/",
                "method": "GET",
                "title": submitter,
            }
        },
        "time_added": "2024-02-01T08:00:00Z",
        "last_updated": last_updated,
        "absolute_url": f"https://reviews.apache.org/r/{rr_id}/",
        "summary": summary or f"Fix flaky test {rr_id}",
        "status": status,
    }


def make_payload(*review_requests):
    """JSON body of the review-requests endpoint, newest first as given"""
    return json.dumps({
        "review_requests": list(review_requests),
        "total_results": len(review_requests),
        "stat": "ok",
    }).encode()


def make_response(status_code=200, content=b"", headers=None):
    """Fake requests.Response"""
    response = Mock()
    response.status_code = status_code
    response.content = content
    response.text = content.decode("utf-8", errors="replace")
    response.headers = headers or {}
    return response


