"""Apifox Open API client used by the OpenAPI import/export tools."""

import logging
from typing import Any, Dict, Optional

import httpx

from core.config import ApifoxConfig
from core.exceptions import ApifoxAPIError

logger = logging.getLogger(__name__)


def extract_error_message(response: httpx.Response) -> str:
    """Pick the most specific error message out of an Apifox error response."""
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        nested = payload.get("data")
        if isinstance(nested, dict) and nested.get("errors"):
            first = nested["errors"][0]
            if isinstance(first, dict) and first.get("message"):
                return first["message"]
        if payload.get("errors"):
            first = payload["errors"][0]
            if isinstance(first, dict) and first.get("message"):
                return first["message"]
        if payload.get("message"):
            return str(payload["message"])
    elif isinstance(payload, str) and payload:
        return payload

    text = response.text.strip()
    if text:
        return text[:500]
    return f"Request failed: {response.status_code} {response.reason_phrase}"


class ApifoxClient:
    """Thin async client for the project import/export endpoints."""

    def __init__(
        self,
        api_key: str,
        config: Optional[ApifoxConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.api_key = api_key
        self.config = config or ApifoxConfig.from_env()
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        return {
            "X-Apifox-Api-Version": self.config.api_version,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _post(self, project_id: str, action: str, payload: Dict[str, Any]) -> httpx.Response:
        url = f"{self.config.base_url}/v1/projects/{project_id}/{action}"
        try:
            async with httpx.AsyncClient(timeout=self.config.timeout, transport=self._transport) as client:
                response = await client.post(
                    url,
                    params={"locale": self.config.locale},
                    json=payload,
                    headers=self._headers(),
                )
        except httpx.HTTPError as e:
            logger.error(f"Apifox {action} request for project {project_id} failed: {e}")
            raise ApifoxAPIError(f"{type(e).__name__}: {e}") from e

        if response.is_success:
            return response

        message = extract_error_message(response)
        logger.error(f"Apifox {action} failed for project {project_id}: {response.status_code} {message}")
        try:
            body = response.json()
        except ValueError:
            body = response.text
        raise ApifoxAPIError(message, status_code=response.status_code, payload=body)

    async def import_openapi(self, project_id: str, data: str) -> Any:
        """Import one OpenAPI document (JSON or YAML text, or a URL)."""
        response = await self._post(project_id, "import-openapi", {"input": data})
        logger.info(f"Imported OpenAPI data into Apifox project {project_id}")
        try:
            return response.json()
        except ValueError:
            return response.text

    async def export_openapi(
        self,
        project_id: str,
        oas_version: str = "3.1",
        export_format: str = "JSON"
    ) -> str:
        """Export the whole project and return the document text."""
        payload = {
            "scope": {"type": "ALL"},
            "options": {
                "includeApifoxExtensionProperties": False,
                "addFoldersToTags": False
            },
            "oasVersion": oas_version,
            "exportFormat": export_format,
        }
        response = await self._post(project_id, "export-openapi", payload)
        logger.info(f"Exported Apifox project {project_id} as OpenAPI {oas_version} {export_format}")
        return response.text
