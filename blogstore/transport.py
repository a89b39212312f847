"""Transport layer for blogstore - PostgREST queries over HTTP."""

from typing import Optional, Dict, Any, List, Tuple, Iterable, Union

import httpx

NO_ROWS_CODE = "PGRST116"
OBJECT_MEDIA_TYPE = "application/vnd.pgrst.object+json"


class QueryError(Exception):
    """Raised when the query interface rejects a request."""

    def __init__(self, message: str, status_code: Optional[int] = None,
                 code: Optional[str] = None, details: Optional[str] = None):
        self.status_code = status_code
        self.code = code
        self.details = details
        super().__init__(message)


class NoRowsError(QueryError):
    """Raised when a single-row fetch matched nothing."""
    pass


def quote_value(value: Any) -> str:
    """Quote a value for use inside ``in.(...)`` lists and ``or=(...)`` trees."""
    text = str(value).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def ilike_pattern(term: str) -> str:
    return f"*{term}*"


class Query:
    """Chainable request against one table, executed with ``execute()``."""

    def __init__(self, transport: "RestTransport", table: str):
        self.transport = transport
        self.table = table
        self.method = "GET"
        self.params: List[Tuple[str, str]] = []
        self.headers: Dict[str, str] = {}
        self.body: Optional[Union[Dict[str, Any], List[Dict[str, Any]]]] = None
        self._single = False

    # Shape
    def select(self, columns: str = "*") -> "Query":
        self.params.append(("select", "".join(columns.split())))
        return self

    def insert(self, rows: Union[Dict[str, Any], List[Dict[str, Any]]],
               returning: bool = True) -> "Query":
        self.method = "POST"
        self.body = rows
        self.headers["Prefer"] = "return=representation" if returning else "return=minimal"
        return self

    def update(self, values: Dict[str, Any]) -> "Query":
        self.method = "PATCH"
        self.body = values
        self.headers["Prefer"] = "return=representation"
        return self

    def delete(self) -> "Query":
        self.method = "DELETE"
        self.headers["Prefer"] = "return=minimal"
        return self

    # Filters
    def eq(self, column: str, value: Any) -> "Query":
        self.params.append((column, f"eq.{value}"))
        return self

    def in_(self, column: str, values: Iterable[Any]) -> "Query":
        self.params.append((column, f"in.({','.join(quote_value(v) for v in values)})"))
        return self

    def ilike(self, column: str, pattern: str) -> "Query":
        self.params.append((column, f"ilike.{pattern}"))
        return self

    def or_(self, conditions: Iterable[str]) -> "Query":
        self.params.append(("or", f"({','.join(conditions)})"))
        return self

    # Sort and range
    def order(self, column: str, descending: bool = False) -> "Query":
        self.params.append(("order", f"{column}.{'desc' if descending else 'asc'}"))
        return self

    def range(self, start: int, end: int) -> "Query":
        """Limit to rows ``start`` through ``end`` inclusive."""
        self.params.append(("offset", str(start)))
        self.params.append(("limit", str(end - start + 1)))
        return self

    def single(self) -> "Query":
        self._single = True
        self.headers["Accept"] = OBJECT_MEDIA_TYPE
        return self

    def execute(self) -> Any:
        return self.transport.execute(self)


class RestTransport:
    """Handles HTTP communication with a PostgREST (Supabase) endpoint."""

    def __init__(self, url: str, api_key: str, timeout: float = 10.0,
                 client: Optional[httpx.Client] = None,
                 transport: Optional[httpx.BaseTransport] = None):
        self.base_url = url.rstrip("/") + "/rest/v1"
        self._client = client or httpx.Client(
            base_url=self.base_url,
            headers={
                "apikey": api_key,
                "Authorization": f"Bearer {api_key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def table(self, name: str) -> Query:
        return Query(self, name)

    def execute(self, query: Query) -> Any:
        """Send a query and return its decoded JSON body."""
        try:
            response = self._client.request(
                query.method,
                f"/{query.table}",
                params=query.params,
                json=query.body,
                headers=query.headers,
            )
        except httpx.HTTPError as e:
            print(f"[Transport] {query.method} {query.table} failed: {e}")
            raise QueryError(f"Request to {query.table} failed: {e}")

        if not response.is_success:
            raise self._error_from(response, query)

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    def _error_from(self, response: httpx.Response, query: Query) -> QueryError:
        try:
            payload = response.json()
        except ValueError:
            payload = {}
        if not isinstance(payload, dict):
            payload = {}

        message = payload.get("message") or response.text or response.reason_phrase
        code = payload.get("code")
        details = payload.get("details")

        if code == NO_ROWS_CODE or (query._single and response.status_code == 406):
            return NoRowsError(message, response.status_code, code, details)

        print(f"[Transport] {query.method} {query.table} returned {response.status_code}: {message}")
        return QueryError(message, response.status_code, code, details)

    def close(self):
        self._client.close()
