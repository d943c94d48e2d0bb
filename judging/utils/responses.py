"""Response envelope utilities"""
from typing import Any, Optional


def format_error_response(message: str, error_code: Optional[str] = None, **kwargs) -> dict:
    """
    Format a standardized error envelope

    Args:
        message: Human-readable error message
        error_code: Optional error code (e.g., "CERT_003")
        **kwargs: Additional fields placed in the error object

    Returns:
        Dict of the form {"success": False, "error": {...}, "message": ...}

    Example:
        return format_error_response(
            "Scope already certified for this role",
            error_code="CERT_003",
            context={"role": "TALLY_MASTER"}
        )
    """
    error = {"message": message}
    if error_code:
        error["code"] = error_code
    error.update(kwargs)
    return {"success": False, "error": error, "message": message}


def format_success_response(message: str, data: Any = None, **kwargs) -> dict:
    """
    Format a standardized success envelope

    Args:
        message: Success message
        data: Payload (serialized schema, dict or list)
        **kwargs: Additional top-level fields (e.g., pagination)

    Returns:
        Dict of the form {"success": True, "data": ..., "message": ...}

    Example:
        return format_success_response(
            "Certification recorded",
            data=CertificationResponse.model_validate(cert).model_dump(mode="json")
        )
    """
    response = {"success": True, "data": data, "message": message}
    response.update(kwargs)
    return response
