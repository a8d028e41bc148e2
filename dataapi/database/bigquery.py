import os, logging, typing as t

import httpx

log = logging.getLogger("dataapi.database")

DEFAULT_API_URL = "https://bigquery.googleapis.com/bigquery/v2"
DEFAULT_MAX_RESULTS = 1000


class QueryServiceError(RuntimeError):
    """The query service answered with an error or could not be reached."""

    def __init__(self, status_code: int, detail: str, upstream: bool = True):
        super().__init__(f"query service error {status_code}: {detail}")
        self.status_code = status_code
        self.detail = detail
        self.upstream = upstream


def _query_request_body(sql: str, max_results: int) -> dict[str, t.Any]:
    return {
        "query": sql,
        "useLegacySql": False,
        "maxResults": max_results,
    }


def _error_detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    err = body.get("error") if isinstance(body, dict) else None
    if isinstance(err, dict) and err.get("message"):
        return str(err["message"])
    return resp.text


def _run_query(
    sql: str,
    *,
    project: str | None = None,
    access_token: str | None = None,
    max_results: int | None = None,
    client: httpx.Client | None = None,
) -> dict[str, t.Any]:
    """
    Run `sql` through the jobs.query endpoint and return the parsed reply.
    Settings not passed explicitly come from the environment.
    """
    project = project or os.getenv("BIGQUERY_PROJECT")
    if not project:
        raise QueryServiceError(500, "BIGQUERY_PROJECT not configured", upstream=False)
    token = access_token or os.getenv("BIGQUERY_ACCESS_TOKEN")
    if max_results is None:
        max_results = int(os.getenv("BIGQUERY_MAX_RESULTS", str(DEFAULT_MAX_RESULTS)))
    base_url = os.getenv("BIGQUERY_API_URL", DEFAULT_API_URL).rstrip("/")
    url = f"{base_url}/projects/{project}/queries"

    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"

    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=float(os.getenv("BIGQUERY_TIMEOUT_SECONDS", "30")))

    try:
        log.debug("POST %s", url)
        try:
            resp = client.post(url, json=_query_request_body(sql, max_results), headers=headers)
        except httpx.HTTPError as e:
            log.warning("query service unreachable: %s", e)
            raise QueryServiceError(502, str(e)) from e

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            log.warning("query service returned %s: %s", resp.status_code, detail)
            raise QueryServiceError(resp.status_code, detail)

        data = resp.json()
        if not data.get("jobComplete", True):
            log.warning("query job %s did not complete in time", data.get("jobReference"))
        return data
    finally:
        if own_client:
            client.close()
