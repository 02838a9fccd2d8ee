import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import requests

from softwhere import config

logger = logging.getLogger(__name__)

HUBSPOT_API = "https://api.hubapi.com/crm/v3/objects"
TIMEOUT = 10


def _headers() -> Dict[str, str]:
    if not config.HUBSPOT_API_KEY:
        raise RuntimeError("HUBSPOT_API_KEY not configured")
    return {"Authorization": f"Bearer {config.HUBSPOT_API_KEY}", "Content-Type": "application/json"}


def is_configured() -> bool:
    return bool(config.HUBSPOT_API_KEY)


def split_name(name: str) -> Tuple[str, str]:
    """'Dana Scully' -> ('Dana', 'Scully'); a single word is all first name."""
    parts = (name or "").split(None, 1)
    if not parts:
        return "", ""
    return parts[0], parts[1] if len(parts) > 1 else ""


def contact_properties(name: str, email: str, phone: Optional[str] = None) -> Dict[str, str]:
    first, last = split_name(name)
    props = {"email": email.strip().lower(), "firstname": first}
    if last:
        props["lastname"] = last
    if phone:
        props["phone"] = phone.strip()
    return props


def find_contact_by_email(email: str) -> Optional[Dict[str, Any]]:
    payload = {
        "filterGroups": [{"filters": [{"propertyName": "email", "operator": "EQ", "value": email.strip().lower()}]}],
        "limit": 1,
    }
    r = requests.post(f"{HUBSPOT_API}/contacts/search", json=payload, headers=_headers(), timeout=TIMEOUT)
    r.raise_for_status()
    results = r.json().get("results") or []
    return results[0] if results else None


def create_contact(name: str, email: str, phone: Optional[str] = None) -> Dict[str, Any]:
    """
    Create the quote's contact. A returning customer (HubSpot answers 409 for a
    known email) resolves to the existing contact instead of failing.
    """
    headers = _headers()
    props = contact_properties(name, email, phone)
    r = requests.post(f"{HUBSPOT_API}/contacts", json={"properties": props}, headers=headers, timeout=TIMEOUT)
    if r.status_code == 409:
        existing = find_contact_by_email(email)
        if existing is not None:
            logger.info("HubSpot contact already exists for %s: %s", props["email"], existing.get("id"))
            return existing
    r.raise_for_status()
    return r.json()


def create_note_for_contact(contact_id: str, note_text: str, timestamp: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Create a note and associate it with the contact.
    """
    headers = _headers()
    ts = timestamp or datetime.now(timezone.utc)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    props = {"hs_note_body": note_text, "hs_timestamp": ts.isoformat()}
    r = requests.post(f"{HUBSPOT_API}/notes", json={"properties": props}, headers=headers, timeout=TIMEOUT)
    r.raise_for_status()
    note = r.json()
    assoc_url = f"{HUBSPOT_API}/notes/{note['id']}/associations/contact/{contact_id}/note_to_contact"
    assoc_r = requests.put(assoc_url, headers=headers, timeout=TIMEOUT)
    assoc_r.raise_for_status()
    return note
