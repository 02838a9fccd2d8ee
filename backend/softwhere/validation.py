import logging
import re
from typing import Any, Dict, Mapping, Optional

from softwhere import catalog
from softwhere.estimator import EstimatorInput

logger = logging.getLogger(__name__)

MAX_PAGES = 500
MAX_FEATURES = 50
MAX_TECH = 50
MAX_EMAIL_LENGTH = 254

EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")

DISPOSABLE_DOMAINS = frozenset({
    "10minutemail.com",
    "guerrillamail.com",
    "mailinator.com",
    "tempmail.org",
    "temp-mail.org",
    "throwaway.email",
    "yopmail.com",
    "trashmail.com",
    "mailnesia.com",
    "sharklasers.com",
})


class EstimateValidationError(ValueError):
    """Raised when a request is rejected before the estimator runs."""


def _string_list(payload: Mapping[str, Any], key: str, limit: Optional[int] = None) -> list:
    value = payload.get(key)
    if value is None:
        return []
    if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
        raise EstimateValidationError(f"{key} must be an array of strings")
    if limit is not None and len(value) > limit:
        raise EstimateValidationError(f"{key} must be an array of up to {limit} items")
    return list(value)


def validate_estimator_input(payload: Mapping[str, Any]) -> EstimatorInput:
    """
    Strict allow-list check of a raw request body.

    The estimator itself is lenient (unknown ids cost nothing); this is where
    bad input is actually rejected.
    """
    if not isinstance(payload, Mapping):
        raise EstimateValidationError("Request body must be an object")

    project_type = payload.get("projectType")
    complexity = payload.get("complexity")
    pages = payload.get("pages")
    if not project_type or not complexity or pages is None:
        raise EstimateValidationError("Missing required fields")

    if project_type not in catalog.PROJECT_TYPES:
        raise EstimateValidationError("Invalid projectType")
    if complexity not in catalog.COMPLEXITIES:
        raise EstimateValidationError("Invalid complexity")

    if isinstance(pages, bool) or not isinstance(pages, int) or pages < 1 or pages > MAX_PAGES:
        raise EstimateValidationError(f"pages must be between 1 and {MAX_PAGES}")

    features = _string_list(payload, "features", MAX_FEATURES)
    tech_stack = _string_list(payload, "techStack", MAX_TECH)
    platforms = _string_list(payload, "platforms")
    unknown_platforms = set(platforms) - set(catalog.PLATFORMS)
    if unknown_platforms:
        raise EstimateValidationError(f"Invalid platforms: {', '.join(sorted(unknown_platforms))}")

    subtype = payload.get("subtype")
    if subtype is not None and subtype != "":
        if not isinstance(subtype, str) or catalog.find_subtype(project_type, subtype) is None:
            raise EstimateValidationError(f"Invalid subtype for {project_type}")
    else:
        subtype = None

    return EstimatorInput(
        projectType=project_type,
        complexity=complexity,
        pages=pages,
        features=frozenset(features),
        subtype=subtype,
        techStack=frozenset(tech_stack),
        platforms=frozenset(platforms),
    )


def validate_use_ai(payload: Mapping[str, Any]) -> bool:
    """`useAi` defaults to true; anything other than a JSON boolean is rejected."""
    value = payload.get("useAi")
    if value is None:
        return True
    if not isinstance(value, bool):
        raise EstimateValidationError("useAi must be a boolean")
    return value


def validate_email(email: str, check_disposable: bool = False) -> Dict[str, Any]:
    errors = []
    if not isinstance(email, str) or not EMAIL_RE.fullmatch(email):
        errors.append("Invalid email format")
        email = email if isinstance(email, str) else ""
    if len(email) > MAX_EMAIL_LENGTH:
        errors.append("Email address too long")

    domain = email.split("@", 1)[1].lower() if "@" in email else ""
    is_disposable = bool(domain) and domain in DISPOSABLE_DOMAINS
    if check_disposable and is_disposable:
        errors.append("Disposable email addresses are not allowed")

    result = {
        "isValid": not errors,
        "error": "; ".join(errors) or None,
        "isDisposable": is_disposable,
        "domain": domain,
    }
    logger.debug("Email validation completed: %s", result)
    return result


def validate_phone(phone: str) -> Dict[str, Any]:
    digits = re.sub(r"\D", "", phone or "")
    errors = []
    if not digits:
        errors.append("Phone number is required")
    elif len(digits) < 7 or len(digits) > 15:
        errors.append("Phone number must be between 7 and 15 digits")
    return {"isValid": not errors, "error": "; ".join(errors) or None}


def validate_contact(payload: Mapping[str, Any]) -> Dict[str, str]:
    """Check optional quote contact fields and return them normalized."""
    email = payload.get("email")
    phone = payload.get("phone")
    name = payload.get("name")

    if email:
        res = validate_email(email)
        if not res["isValid"]:
            raise EstimateValidationError(res["error"])
    if phone:
        if not isinstance(phone, str):
            raise EstimateValidationError("Phone number must be a string")
        res = validate_phone(phone)
        if not res["isValid"]:
            raise EstimateValidationError(res["error"])
    if name and (not isinstance(name, str) or not name.strip()):
        raise EstimateValidationError("Name must be a non-empty string if provided")

    return {
        "name": name.strip() if name else "Anonymous",
        "email": email or "",
        "phone": phone or "",
    }
