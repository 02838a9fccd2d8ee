import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional

from softwhere import config, hubspot_client
from softwhere.ai_estimator import AIEstimator, is_plausible
from softwhere.db import QuoteStore, utcnow
from softwhere.estimator import EstimatorInput, calculate_estimate
from softwhere.quotes import format_quote_note, generate_quote_id
from softwhere.validation import validate_contact, validate_estimator_input, validate_use_ai

logger = logging.getLogger(__name__)

REASON_FORMULA = "Using formula-based calculation."
REASON_AI_INVALID = "AI estimate contained invalid values, using formula-based calculation instead."


class EstimateOrchestrator:
    """
    Ties the estimator to its collaborators:
      - get_estimate(payload): validated input -> formula estimate, AI override when plausible
      - save_quote(payload): estimate + contact details -> stored quote, CRM note
      - get_quote(quote_id), list_quotes(...)
    """

    def __init__(
        self,
        db_path: str = config.DB_PATH,
        ai_estimator: Optional[AIEstimator] = None,
        quote_store: Optional[QuoteStore] = None,
    ):
        self.db_path = db_path
        self.ai = ai_estimator if ai_estimator is not None else AIEstimator()
        self.quote_store = quote_store if quote_store is not None else QuoteStore(db_path=db_path)

    def _estimate(self, data: EstimatorInput, use_ai: bool = True) -> Dict[str, Any]:
        formula = calculate_estimate(data).to_dict()
        logger.debug("Formula estimate for %s: %s", data.projectType, formula)

        ai_estimate = self.ai.estimate(data) if (use_ai and self.ai.enabled) else None
        if is_plausible(ai_estimate):
            logger.info("Using AI-powered estimate (%s)", data.projectType)
            return {
                "developmentCost": ai_estimate.developmentCost,
                "deadlineWeeks": ai_estimate.deadlineWeeks,
                "supportCost": ai_estimate.supportCost,
                "breakdown": formula["breakdown"],
                "source": "ai",
                "reasoning": ai_estimate.reasoning,
            }

        logger.info("Using formula-based estimate (%s)", data.projectType)
        return {
            **formula,
            "source": "formula",
            "reasoning": REASON_AI_INVALID if ai_estimate is not None else REASON_FORMULA,
        }

    def get_estimate(self, payload: Mapping[str, Any], use_ai: bool = True) -> Dict[str, Any]:
        data = validate_estimator_input(payload)
        return self._estimate(data, use_ai=use_ai)

    def save_quote(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        """
        Validate, estimate and persist a quote request with optional contact
        details. CRM failures are logged and never fail the save.
        """
        data = validate_estimator_input(payload)
        customer = validate_contact(payload)
        use_ai = validate_use_ai(payload)
        logger.info("Quote save request started (email=%s)", customer["email"] or "-")

        estimate = self._estimate(data, use_ai=use_ai)
        quote = {
            "quoteId": generate_quote_id(),
            "customerInfo": customer,
            "projectDetails": data.to_dict(),
            "estimate": estimate,
            "createdAt": utcnow(),
        }
        quote_id = self.quote_store.insert(quote)
        logger.info("Quote saved: %s", quote_id)

        try:
            self.notify_crm(quote)
        except Exception as e:
            logger.warning("Failed to send quote notification for %s: %s", quote_id, e)

        return {"quoteId": quote_id}

    def notify_crm(self, quote: Dict[str, Any]) -> Optional[str]:
        """Push the quote to HubSpot as a contact note; skipped when not configured or anonymous."""
        customer = quote.get("customerInfo") or {}
        if not hubspot_client.is_configured() or not customer.get("email"):
            logger.debug("CRM notification skipped for %s", quote.get("quoteId"))
            return None
        contact = hubspot_client.create_contact(
            name=customer.get("name") or "Anonymous",
            email=customer["email"],
            phone=customer.get("phone") or None,
        )
        contact_id = contact.get("id")
        hubspot_client.create_note_for_contact(contact_id, format_quote_note(quote), timestamp=quote.get("createdAt"))
        logger.info("Quote %s sent to CRM contact %s", quote.get("quoteId"), contact_id)
        return contact_id

    def get_quote(self, quote_id: str) -> Optional[Dict[str, Any]]:
        return self.quote_store.get(quote_id)

    def list_quotes(
        self,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        project_type: Optional[str] = None,
        source: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        return self.quote_store.list(start_date=start_date, end_date=end_date, project_type=project_type, source=source)
