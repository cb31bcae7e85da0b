import requests
import json
import logging
from typing import Dict, Any, Optional

from pydantic import ValidationError

from lawn_guardian.config import Settings
from lawn_guardian.core.treatment_rules import calculate_risk_level, current_season, map_product_type
from lawn_guardian.domain.models import DiagnosisRequest, Forecast, LawnAnalysisResult

logger = logging.getLogger("lawn_guardian.services.diagnosis")


class DiagnosisError(RuntimeError):
    """The diagnosis service could not produce a usable analysis."""


class DiagnosisClient:
    """
    Client for the hosted lawn diagnosis function.
    Sends the intake payload and validates the diagnosis / treatment plan / forecast it returns.
    """

    def __init__(self, settings: Optional[Settings] = None, session: Optional[requests.Session] = None):
        self.settings = settings or Settings.from_env()
        self.session = session or requests.Session()

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json", **self.settings.extra_headers}
        if self.settings.api_key:
            headers["Authorization"] = f"Bearer {self.settings.api_key}"
        return headers

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """POSTs with retries on unparseable bodies. Connection/HTTP failures are not retried."""
        max_retries = max(1, self.settings.max_retries)
        last_error = None
        last_raw = None

        for attempt in range(max_retries):
            try:
                response = self.session.post(
                    self.settings.diagnosis_url,
                    json=payload,
                    headers=self._headers(),
                    timeout=self.settings.http_timeout,
                )
                response.raise_for_status()
                last_raw = response.text
                return response.json()

            except (json.JSONDecodeError, requests.exceptions.JSONDecodeError) as e:
                logger.warning(f"Diagnosis response not JSON (Attempt {attempt+1}): {e}")
                last_error = e
                continue
            except requests.exceptions.RequestException as e:
                logger.error(f"Diagnosis request failed: {e}")
                raise DiagnosisError(f"AI analysis failed: {e}") from e

        preview = last_raw[:300] if last_raw else "None"
        raise DiagnosisError(
            f"Diagnosis service returned unparseable data after {max_retries} attempts.\n"
            f"Error: {last_error}\n"
            f"Preview: {preview}..."
        )

    def diagnose(self, request: DiagnosisRequest) -> LawnAnalysisResult:
        logger.info(f"Requesting diagnosis ({1 + len(request.additional_images)} image(s))")
        payload = request.to_payload()
        payload["season"] = payload["season"] or current_season()
        data = self._post(payload)

        if not isinstance(data, dict):
            raise DiagnosisError("Invalid analysis response - expected a JSON object")
        if data.get("error"):
            logger.error(f"Diagnosis service error: {data['error']}")
            raise DiagnosisError(str(data["error"]))
        if not data.get("diagnosis") or not data.get("treatment_plan"):
            raise DiagnosisError("Invalid analysis response - missing diagnosis or treatment plan")

        try:
            result = LawnAnalysisResult.model_validate(data)
        except ValidationError as e:
            raise DiagnosisError(f"Invalid analysis response: {e}") from e

        primary_type = result.diagnosis.identified_issues[0].type if result.diagnosis.identified_issues else ""
        for treatment in result.treatment_plan.chemical_treatments:
            if not treatment.product_type:
                treatment.product_type = map_product_type(treatment.category or primary_type)

        if result.forecast is None:
            result.forecast = Forecast(risk_level=calculate_risk_level(result.diagnosis.identified_issues))

        logger.info(f"Diagnosis received: {len(result.diagnosis.identified_issues)} issue(s)")
        return result
