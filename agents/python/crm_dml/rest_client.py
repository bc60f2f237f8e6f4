from __future__ import annotations

import logging
import urllib.parse
from typing import Iterable, List

import httpx

from . import config
from .errors import DmlError


logger = logging.getLogger(__name__)


def _chunk(seq: list, size: int = config.BATCH_SIZE) -> Iterable[list]:
    for i in range(0, len(seq), size):
        yield seq[i : i + size]


def soql_quote(value: str) -> str:
    """Quote a string literal for a SOQL WHERE clause."""
    return "'%s'" % value.replace("\\", "\\\\").replace("'", "\\'")


class RestClient:
    def __init__(
        self,
        access_token: str,
        instance_url: str,
        transport: httpx.BaseTransport | None = None,
    ):
        self.access_token = access_token
        self.instance_url = instance_url.rstrip("/")
        self.api_version = config.API_VERSION
        self._transport = transport
        self._headers = {
            "Authorization": f"Bearer {self.access_token}",
            "Accept": "application/json",
        }

    def _url(self, path: str) -> str:
        if path.startswith("http"):
            return path
        if path.startswith("/services/"):
            return f"{self.instance_url}{path}"
        return f"{self.instance_url}/services/data/v{self.api_version}/{path.lstrip('/')}"

    def _client(self, json_body: bool = False) -> httpx.Client:
        headers = dict(self._headers)
        if json_body:
            headers["Content-Type"] = "application/json"
        return httpx.Client(timeout=30, headers=headers, transport=self._transport)

    def query(self, soql: str) -> list[dict]:
        encoded_soql = urllib.parse.quote(soql)
        url = self._url(f"query?q={encoded_soql}")
        with self._client() as client:
            resp = client.get(url)
            resp.raise_for_status()
            data = resp.json()
            records = data.get("records", [])
            while not data.get("done", True):
                resp = client.get(self._url(data["nextRecordsUrl"]))
                resp.raise_for_status()
                data = resp.json()
                records.extend(data.get("records", []))
        return records

    def _collection(self, method: str, path: str, object_api: str, records: List[dict], all_or_none: bool) -> list[dict]:
        # allOrNone only holds within one request; a failed chunk stops the rest,
        # but chunks already committed stay committed.
        results: list[dict] = []
        with self._client(json_body=True) as client:
            for chunk in _chunk(records):
                body = {
                    "allOrNone": all_or_none,
                    "records": [{"attributes": {"type": object_api}, **r} for r in chunk],
                }
                resp = client.request(method, self._url(path), json=body)
                resp.raise_for_status()
                results.extend(self._check(object_api, chunk, resp.json(), all_or_none))
        return results

    def _check(self, object_api: str, records: List[dict], results: list[dict], all_or_none: bool) -> list[dict]:
        errors: list[dict] = []
        for rec, res in zip(records, results):
            if res.get("success"):
                continue
            key = rec.get("Id") or rec.get("id") or rec.get("Name") or rec.get("LastName") or rec.get("Subject")
            for e in res.get("errors") or []:
                logger.info(
                    "%s DML error for record %r: %s: %s",
                    object_api,
                    key,
                    e.get("statusCode"),
                    e.get("message"),
                )
                errors.append({"record_key": key, **e})
        if errors and all_or_none:
            raise DmlError(object_api, errors)
        return results

    def insert(self, object_api: str, records: List[dict], all_or_none: bool = False) -> list[dict]:
        """Composite insert, 200 records per request."""
        if not records:
            return []
        return self._collection("POST", "composite/sobjects", object_api, records, all_or_none)

    def update(self, object_api: str, records: List[dict], all_or_none: bool = False) -> list[dict]:
        """Composite update; every record must carry its Id."""
        if not records:
            return []
        missing = [r for r in records if not (r.get("Id") or r.get("id"))]
        if missing:
            raise ValueError(f"{object_api} update: {len(missing)} record(s) without Id")
        return self._collection("PATCH", "composite/sobjects", object_api, records, all_or_none)

    def upsert(
        self,
        object_api: str,
        external_id_field: str,
        records: List[dict],
        all_or_none: bool = False,
    ) -> list[dict]:
        """Composite upsert keyed on an external ID field. Results carry a ``created`` flag."""
        if not records:
            return []
        path = f"composite/sobjects/{object_api}/{external_id_field}"
        return self._collection("PATCH", path, object_api, records, all_or_none)

    def delete(self, ids: List[str], all_or_none: bool = False) -> list[dict]:
        if not ids:
            return []
        results: list[dict] = []
        with self._client() as client:
            for chunk in _chunk(list(ids)):
                params = {"ids": ",".join(chunk), "allOrNone": str(all_or_none).lower()}
                resp = client.delete(self._url("composite/sobjects"), params=params)
                resp.raise_for_status()
                results.extend(self._check("delete", [{"Id": i} for i in chunk], resp.json(), all_or_none))
        return results
