# ============================================================================
# Form Data Transformation
# ============================================================================
"""
Per-kind normalisation of raw modal form values before they reach the
admin API.
"""
from typing import Any, Dict
from urllib.parse import parse_qs, urlparse


def _youtube_id(value: str) -> str:
    if "youtube.com" not in value:
        return value
    video_ids = parse_qs(urlparse(value).query).get("v")
    return video_ids[0] if video_ids else value


def transform_form_data(data: Dict[str, Any], kind: str) -> Dict[str, Any]:
    """
    Transform form data for API submission.

    Args:
        data: Raw form values
        kind: Entity kind (user, video, institute, zone)

    Returns:
        Cleaned copy of the form values
    """
    transformed = dict(data)

    # Comma separated tags become a list
    tags = transformed.get("tags")
    if isinstance(tags, str):
        transformed["tags"] = [tag.strip() for tag in tags.split(",") if tag.strip()]

    # Remove empty values
    transformed = {
        key: value for key, value in transformed.items()
        if value is not None and value != ""
    }

    if kind == "video" and isinstance(transformed.get("youtube_video_id"), str):
        transformed["youtube_video_id"] = _youtube_id(transformed["youtube_video_id"])
    elif kind == "user" and isinstance(transformed.get("role"), str):
        transformed["role"] = transformed["role"].lower()
    elif kind == "institute" and isinstance(transformed.get("code"), str):
        transformed["code"] = transformed["code"].upper()

    return transformed
