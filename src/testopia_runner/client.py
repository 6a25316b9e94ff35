"""Testopia XML-RPC client.

Testopia exposes its API at ``<bugzilla>/tr_xmlrpc.cgi``. Logging in sets a
Bugzilla session cookie, so the client sends every call through one
``requests.Session`` that keeps the cookie for the whole build.

Example:
    client = TestopiaClient("https://bugzilla.example.com/tr_xmlrpc.cgi")
    client.login("jdoe@example.com", "secret")
    run = client.get_test_run(42)
    cases = client.get_test_cases(42)
"""

from __future__ import annotations

import gzip
import xmlrpc.client
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse
from xml.parsers.expat import ExpatError

import requests

from testopia_runner.core.exceptions import (
    AuthenticationError,
    ConfigurationError,
    TestopiaRPCError,
)
from testopia_runner.core.models import TestCase, TestRun
from testopia_runner.logging import get_logger

if TYPE_CHECKING:
    from testopia_runner.config import InstallationConfig

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "testopia-runner"

# Property keys containing this are never logged in clear text
BASIC_HTTP_PASSWORD = "basicPassword"

KNOWN_PROPERTIES = frozenset(
    {
        "xmlrpc.basicUsername",
        "xmlrpc.basicPassword",
        "xmlrpc.basicEncoding",
        "xmlrpc.connectionTimeout",
        "xmlrpc.replyTimeout",
        "xmlrpc.userAgent",
        "xmlrpc.gzipCompression",
        "xmlrpc.gzipRequesting",
        "xmlrpc.encoding",
        "xmlrpc.proxy",
    }
)


def parse_properties(properties: str | None) -> dict[str, str]:
    """Parse comma separated ``key=value`` transport properties.

    ``key:value`` is accepted as well when the entry holds no ``=``. Entries
    without a separator, or whose key or value is blank, are ignored.

    Args:
        properties: e.g. ``"xmlrpc.connectionTimeout=5000,xmlrpc.userAgent=ci"``.

    Returns:
        Mapping of property names to values, in input order.
    """
    parsed: dict[str, str] = {}
    if not properties or not properties.strip():
        return parsed

    for entry in properties.split(","):
        key, separator, value = entry.partition("=" if "=" in entry else ":")
        key, value = key.strip(), value.strip()
        if not separator or not key or not value:
            continue
        shown = "********" if BASIC_HTTP_PASSWORD in key else value
        if key not in KNOWN_PROPERTIES:
            logger.warning("Ignoring unknown transport property", key=key)
            continue
        logger.info("Setting transport property", key=key, value=shown)
        parsed[key] = value
    return parsed


def _as_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "yes", "1", "on")


def _as_seconds(value: str | None) -> float | None:
    if value is None:
        return None
    try:
        return int(value) / 1000
    except ValueError as e:
        raise ConfigurationError(f"Invalid timeout (milliseconds expected): {value}") from e


@dataclass(frozen=True)
class TransportOptions:
    """Transport settings derived from the installation properties."""

    basic_username: str | None = None
    basic_password: str | None = None
    connection_timeout: float | None = None
    reply_timeout: float | None = None
    user_agent: str = DEFAULT_USER_AGENT
    gzip_compression: bool = False
    gzip_requesting: bool = True
    encoding: str | None = None
    proxy: str | None = None

    @classmethod
    def from_properties(cls, properties: dict[str, str]) -> TransportOptions:
        """Build options from parsed ``xmlrpc.*`` properties."""
        return cls(
            basic_username=properties.get("xmlrpc.basicUsername"),
            basic_password=properties.get("xmlrpc.basicPassword"),
            connection_timeout=_as_seconds(properties.get("xmlrpc.connectionTimeout")),
            reply_timeout=_as_seconds(properties.get("xmlrpc.replyTimeout")),
            user_agent=properties.get("xmlrpc.userAgent", DEFAULT_USER_AGENT),
            gzip_compression=_as_bool(properties.get("xmlrpc.gzipCompression", "false")),
            gzip_requesting=_as_bool(properties.get("xmlrpc.gzipRequesting", "true")),
            encoding=properties.get("xmlrpc.encoding"),
            proxy=properties.get("xmlrpc.proxy"),
        )

    @property
    def timeout(self) -> tuple[float | None, float | None] | None:
        if self.connection_timeout is None and self.reply_timeout is None:
            return None
        return (self.connection_timeout, self.reply_timeout)


class RequestsTransport(xmlrpc.client.Transport):
    """XML-RPC transport that posts through a ``requests.Session``."""

    def __init__(self, scheme: str, session: requests.Session, options: TransportOptions):
        super().__init__()
        self.scheme = scheme
        self.session = session
        self.options = options

    def request(self, host, handler, request_body, verbose=False):
        url = f"{self.scheme}://{host}{handler}"
        headers = {"Content-Type": "text/xml", "User-Agent": self.options.user_agent}
        if self.options.gzip_compression:
            request_body = gzip.compress(request_body)
            headers["Content-Encoding"] = "gzip"
        if not self.options.gzip_requesting:
            headers["Accept-Encoding"] = "identity"

        response = self.session.post(
            url, data=request_body, headers=headers, timeout=self.options.timeout
        )
        if response.status_code != 200:
            raise xmlrpc.client.ProtocolError(
                url, response.status_code, response.reason, dict(response.headers)
            )

        parser, unmarshaller = self.getparser()
        parser.feed(response.content)
        parser.close()
        return unmarshaller.close()


class TestopiaClient:
    """Client for the subset of the Testopia XML-RPC API used by the runner."""

    __test__ = False

    def __init__(
        self,
        url: str,
        options: TransportOptions | None = None,
        session: requests.Session | None = None,
    ):
        """
        Initialize client for a Testopia XML-RPC endpoint.

        Args:
            url: URL of tr_xmlrpc.cgi.
            options: Transport options, defaults apply when omitted.
            session: Session to reuse, a new one is created when omitted.

        Raises:
            ConfigurationError: If the URL is not http or https.
        """
        scheme = urlparse(url).scheme
        if scheme not in ("http", "https"):
            raise ConfigurationError(f"Unrecognized URL scheme for Testopia URL: {url!r}")

        self.url = url
        self.options = options or TransportOptions()
        self.session = session or requests.Session()
        if self.options.basic_username:
            self.session.auth = (self.options.basic_username, self.options.basic_password or "")
        if self.options.proxy:
            self.session.proxies.update({"http": self.options.proxy, "https": self.options.proxy})

        self.user_id: int | None = None
        self._proxy = xmlrpc.client.ServerProxy(
            url,
            transport=RequestsTransport(scheme, self.session, self.options),
            encoding=self.options.encoding,
        )

    @classmethod
    def from_installation(cls, installation: InstallationConfig) -> TestopiaClient:
        """Create a client for a configured Testopia installation."""
        properties = parse_properties(installation.properties)
        return cls(installation.url, options=TransportOptions.from_properties(properties))

    def _call(self, method: str, *params: Any) -> Any:
        """Invoke an XML-RPC method such as ``TestRun.get``."""
        logger.debug("Calling Testopia", method=method)
        try:
            return getattr(self._proxy, method)(*params)
        except xmlrpc.client.Fault as e:
            raise TestopiaRPCError(method, e.faultString) from e
        except xmlrpc.client.ProtocolError as e:
            raise TestopiaRPCError(method, f"HTTP {e.errcode} {e.errmsg}") from e
        except requests.RequestException as e:
            raise TestopiaRPCError(method, str(e)) from e
        except ExpatError as e:
            raise TestopiaRPCError(method, f"invalid XML-RPC response: {e}") from e

    def login(self, username: str, password: str) -> int | None:
        """Log into Testopia, keeping the session cookie.

        Returns:
            The id of the logged in user, when the server reports it.

        Raises:
            AuthenticationError: If the login call fails for any reason.
        """
        try:
            result = self._call("User.login", {"login": username, "password": password})
        except TestopiaRPCError as e:
            raise AuthenticationError(username, e.reason) from e

        if isinstance(result, dict):
            self.user_id = result.get("id")
        elif isinstance(result, int):
            self.user_id = result
        logger.info("Logged into Testopia", url=self.url, user_id=self.user_id)
        return self.user_id

    def get_test_run(self, run_id: int) -> TestRun:
        """Get a test run by id."""
        return TestRun.from_dict(self._call("TestRun.get", run_id))

    def get_test_cases(self, run_id: int) -> list[TestCase]:
        """Get every test case of a test run."""
        return [TestCase.from_dict(data) for data in self._call("TestRun.get_test_cases", run_id)]

    def update_test_case(self, test_case: TestCase) -> Any:
        """Push the status (and notes) of a test case to its case-run.

        Raises:
            TestopiaRPCError: If the case is not bound to a run, build and
                environment, or if the call fails.
        """
        method = "TestCaseRun.update"
        if test_case.status is None:
            raise TestopiaRPCError(method, f"test case {test_case.id} has no status to update")
        ids = (test_case.run_id, test_case.id, test_case.build_id, test_case.environment_id)
        if any(i is None for i in ids):
            raise TestopiaRPCError(
                method,
                f"test case {test_case.id} is not bound to a test run build and environment",
            )

        options: dict[str, Any] = {"case_run_status_id": test_case.status.value}
        if test_case.notes:
            options["notes"] = "\n".join(test_case.notes)
        return self._call(method, *ids, options)
