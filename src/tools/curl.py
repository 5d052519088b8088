"""Parse curl command lines into request descriptions for the http_request tool."""

import json
import shlex
from typing import Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, quote_plus, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, Field

from core.exceptions import CurlParseError

# Flags that take no value and do not change the request
_IGNORED_FLAGS = {"--compressed", "-s", "--silent", "-S", "--show-error", "-v", "--verbose", "-i", "--include"}

_DATA_FLAGS = {"-d", "--data", "--data-raw", "--data-binary", "--data-ascii"}


class CurlRequest(BaseModel):
    """HTTP request described by a curl command."""

    method: str = "GET"
    url: str
    headers: Dict[str, str] = Field(default_factory=dict)
    data: Optional[str] = None
    auth: Optional[Tuple[str, str]] = None
    verify: bool = True
    follow_redirects: bool = False


def _split_header(raw: str) -> Tuple[str, str]:
    if ":" not in raw:
        raise CurlParseError(f"Invalid header: {raw}")
    name, value = raw.split(":", 1)
    name = name.strip()
    if not name:
        raise CurlParseError(f"Invalid header: {raw}")
    return name, value.strip()


def _expand_short_cluster(token: str) -> List[str]:
    """Split ``-sSL`` clusters and attached short values such as ``-XPOST``."""
    if len(token) > 2 and token.startswith("-") and not token.startswith("--"):
        if token[1] in "XHduAbe":
            return [token[:2], token[2:]]
        letters = token[1:]
        if all(f"-{ch}" in _IGNORED_FLAGS or ch in "kLGI" for ch in letters):
            return [f"-{ch}" for ch in letters]
    return [token]


def _value_of(tokens: List[str], index: int) -> str:
    if index + 1 >= len(tokens):
        raise CurlParseError(f"Option {tokens[index]} requires a value")
    return tokens[index + 1]


def parse_curl(command: str) -> CurlRequest:
    """
    Parse a curl command line.

    Args:
        command: Shell-style command, starting with ``curl``

    Returns:
        CurlRequest

    Raises:
        CurlParseError: If the command is empty, malformed or has no URL
    """
    if not isinstance(command, str) or not command.strip():
        raise CurlParseError("curl command cannot be empty")

    # Line continuations from copied terminal snippets
    normalized = command.replace("\\\r\n", " ").replace("\\\n", " ")
    try:
        tokens = shlex.split(normalized)
    except ValueError as e:
        raise CurlParseError(f"Invalid curl command: {e}")

    if not tokens or tokens[0] != "curl":
        raise CurlParseError("Command must start with 'curl'")

    expanded = []
    for token in tokens[1:]:
        expanded.extend(_expand_short_cluster(token))

    method = None
    url = None
    headers: Dict[str, str] = {}
    data_parts: List[str] = []
    urlencoded_parts: List[str] = []
    auth = None
    verify = True
    follow_redirects = False
    as_query = False
    head_only = False

    i = 0
    while i < len(expanded):
        token = expanded[i]

        # --flag=value form
        if token.startswith("--") and "=" in token:
            flag, inline = token.split("=", 1)
            expanded[i:i + 1] = [flag, inline]
            continue

        if token in ("-X", "--request"):
            method = _value_of(expanded, i).upper()
            i += 2
        elif token in ("-H", "--header"):
            name, value = _split_header(_value_of(expanded, i))
            headers[name] = value
            i += 2
        elif token in _DATA_FLAGS:
            data_parts.append(_value_of(expanded, i))
            i += 2
        elif token == "--data-urlencode":
            name, sep, value = _value_of(expanded, i).partition("=")
            if not sep:
                name, value = "", name
            encoded = quote_plus(value)
            urlencoded_parts.append(f"{name}={encoded}" if name else encoded)
            i += 2
        elif token == "--json":
            data_parts.append(_value_of(expanded, i))
            headers.setdefault("Content-Type", "application/json")
            headers.setdefault("Accept", "application/json")
            i += 2
        elif token in ("-u", "--user"):
            raw = _value_of(expanded, i)
            user, _, password = raw.partition(":")
            auth = (user, password)
            i += 2
        elif token in ("-b", "--cookie"):
            headers["Cookie"] = _value_of(expanded, i)
            i += 2
        elif token in ("-A", "--user-agent"):
            headers["User-Agent"] = _value_of(expanded, i)
            i += 2
        elif token in ("-e", "--referer"):
            headers["Referer"] = _value_of(expanded, i)
            i += 2
        elif token in ("-k", "--insecure"):
            verify = False
            i += 1
        elif token in ("-L", "--location"):
            follow_redirects = True
            i += 1
        elif token in ("-G", "--get"):
            as_query = True
            i += 1
        elif token in ("-I", "--head"):
            head_only = True
            i += 1
        elif token == "--url":
            url = _value_of(expanded, i)
            i += 2
        elif token in _IGNORED_FLAGS:
            i += 1
        elif token.startswith("-") and len(token) > 1:
            raise CurlParseError(f"Unsupported curl option: {token}")
        else:
            if url is not None:
                raise CurlParseError(f"Unexpected argument: {token}")
            url = token
            i += 1

    if not url:
        raise CurlParseError("No URL found in curl command")
    if "://" not in url:
        url = f"http://{url}"
    if not urlsplit(url).netloc:
        raise CurlParseError(f"Invalid URL: {url}")

    body_parts = data_parts + urlencoded_parts
    data = "&".join(body_parts) if body_parts else None

    if as_query and data is not None:
        parts = urlsplit(url)
        query = parse_qsl(parts.query, keep_blank_values=True) + parse_qsl(data, keep_blank_values=True)
        url = urlunsplit(parts._replace(query=urlencode(query)))
        data = None

    if head_only:
        method = "HEAD"
    elif method is None:
        method = "POST" if data is not None else "GET"

    if data is not None and not any(k.lower() == "content-type" for k in headers):
        headers["Content-Type"] = "application/x-www-form-urlencoded"

    return CurlRequest(
        method=method,
        url=url,
        headers=headers,
        data=data,
        auth=auth,
        verify=verify,
        follow_redirects=follow_redirects
    )


def pretty_body(text: str, content_type: str) -> str:
    """Indent JSON bodies; anything else is returned unchanged."""
    if "json" not in (content_type or "").lower():
        return text
    try:
        return json.dumps(json.loads(text), indent=2, ensure_ascii=False)
    except ValueError:
        return text
