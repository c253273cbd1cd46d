"""
Parser for dependency tokens given on the command line.

A token describes one dependency in a single shell word:

    anyhow                      crates.io package, any version
    anyhow=1.0.100              crates.io package with a version requirement
    clap+derive+cargo           features are appended with `+`
    serde+no-default-features   disable default features (`serde!default` works too)
    https://github.com/tokio-rs/tokio.git#branch=compat=1.48
    tokio=https://github.com/tokio-rs/tokio.git#rev=556820f
    ./custom-core               local path dependency
    core=../vendored/core=0.2   local path with explicit name and version

The token is classified by ordered checks: a URL scheme makes it a git
dependency, path syntax makes it a local path, anything else is a crates.io
package.
"""

import re
from typing import List, Optional, Tuple

from .dependency import (
    NO_DEFAULT_FEATURES,
    PATH_SYNTAX,
    Dependency,
    DependencyParseError,
    GitRepository,
    LocalPath,
    MalformedDependency,
    RegistryPackage,
    UnguessableName,
)
from .error_handling import log_parsing_error

DEFAULT_FEATURES_MARKER = "!default"


class DependencyGrammar:
    """Compiled patterns of the dependency token grammar.

    The grammar is immutable; build it once and share it between calls.
    """

    def __init__(self):
        self.scheme = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*://")
        self.url = re.compile(
            r"^(?P<scheme>[A-Za-z][A-Za-z0-9+.\-]*)://"
            r"(?:(?P<userinfo>[^@/]+)@)?"
            r"(?P<host>[^/@]+)"
            r"(?P<path>/.*)?$"
        )
        self.path = PATH_SYNTAX
        self.name = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_\-]*$")
        self.version = re.compile(r"^(?:>=|<=|>|<|=|~|\^)?[0-9A-Za-z.*\-]+$")
        self.feature = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_./:\-]*$")
        self.reference = re.compile(r"^[A-Za-z0-9_][A-Za-z0-9_./\-]*$")
        self.commit = re.compile(r"^[0-9A-Fa-f]{7,}$")

    def is_url(self, text: str) -> bool:
        return self.scheme.match(text) is not None

    def is_path(self, text: str) -> bool:
        return self.path.match(text) is not None


DEFAULT_GRAMMAR = DependencyGrammar()


def parse_dependency(
    token: str, grammar: Optional[DependencyGrammar] = None
) -> Dependency:
    """
    Parse a single dependency token.

    Args:
        token: One command-line argument describing a dependency
        grammar: Grammar to use, defaults to the shared module grammar

    Returns:
        Dependency: A RegistryPackage, GitRepository or LocalPath

    Raises:
        MalformedDependency: If the token matches no dependency form
        UnguessableName: If no name was given and none can be derived
    """
    grammar = grammar or DEFAULT_GRAMMAR

    try:
        return _parse(token, grammar)
    except DependencyParseError as e:
        log_parsing_error(
            e.reason, "parsers", "parse_dependency", token=token, exception=e
        )
        raise


def _parse(token: str, grammar: DependencyGrammar) -> Dependency:
    if not token:
        raise MalformedDependency(token, "empty dependency")
    if any(char.isspace() for char in token):
        raise MalformedDependency(token, "whitespace is not allowed")

    body, features, default_features = split_trailer(token, grammar)

    if body.endswith(DEFAULT_FEATURES_MARKER):
        body = body[: -len(DEFAULT_FEATURES_MARKER)]
        default_features = False

    if not body:
        raise MalformedDependency(token, "missing dependency name")

    if grammar.is_url(body):
        return parse_repository(token, body, None, features, default_features, grammar)
    if grammar.is_path(body):
        return parse_local_path(token, body, None, features, default_features, grammar)

    name, separator, rest = body.partition("=")
    name = validate_name(token, name, grammar)

    if not separator:
        return RegistryPackage(name, None, features, default_features)
    if grammar.is_url(rest):
        return parse_repository(token, rest, name, features, default_features, grammar)
    if grammar.is_path(rest):
        return parse_local_path(token, rest, name, features, default_features, grammar)

    version = validate_version(token, rest, grammar)
    return RegistryPackage(name, version, features, default_features)


def split_trailer(
    token: str, grammar: DependencyGrammar = DEFAULT_GRAMMAR
) -> Tuple[str, Tuple[str, ...], bool]:
    """
    Split the `+feature` trailer off a token.

    The trailer starts at the first `+` after a URL scheme's `://`, so that
    schemes such as `git+ssh://` keep their `+`.

    Returns:
        Tuple of (body, features, default_features)
    """
    scheme_end = token.find("://")
    start = scheme_end + 3 if scheme_end != -1 else 0
    plus = token.find("+", start)

    if plus == -1:
        return token, (), True

    features: List[str] = []
    default_features = True

    # The leading `+` leaves an empty first segment.
    for segment in token[plus:].split("+")[1:]:
        if not segment:
            raise MalformedDependency(token, "empty feature name")
        if segment == NO_DEFAULT_FEATURES:
            default_features = False
            continue
        if not grammar.feature.match(segment):
            raise MalformedDependency(token, f"`{segment}` is not a valid feature")
        features.append(segment)

    return token[:plus], tuple(features), default_features


def parse_repository(
    token: str,
    text: str,
    name: Optional[str],
    features: Tuple[str, ...],
    default_features: bool,
    grammar: DependencyGrammar = DEFAULT_GRAMMAR,
) -> GitRepository:
    """Parse `URL[#ref][=version]` into a git dependency."""
    scheme_end = text.index("://") + 3
    cut = _find_first(text, "#=", scheme_end)
    url, remainder = text[:cut], text[cut:]

    match = grammar.url.match(url)
    if not match:
        raise MalformedDependency(token, f"`{url}` is not a valid repository URL")

    branch = rev = None
    if remainder.startswith("#"):
        fragment = remainder[1:]
        if "#" in fragment:
            raise MalformedDependency(
                token, "a repository takes either a branch or a rev, not both"
            )
        branch, rev, remainder = _parse_reference(token, fragment, grammar)

    version = None
    if remainder.startswith("="):
        version = validate_version(token, remainder[1:], grammar)
    elif remainder:
        raise MalformedDependency(token, f"unexpected `{remainder}` after the URL")

    if name is None:
        name = derive_repository_name(token, match.group("path"))

    return GitRepository(
        name=name,
        url=url,
        version=version,
        features=features,
        default_features=default_features,
        branch=branch,
        rev=rev,
    )


def _parse_reference(
    token: str, fragment: str, grammar: DependencyGrammar
) -> Tuple[Optional[str], Optional[str], str]:
    """Parse the text after `#`, returning (branch, rev, remainder)."""
    for key in ("branch", "rev"):
        prefix = f"{key}="
        if fragment.startswith(prefix):
            value, separator, rest = fragment[len(prefix):].partition("=")
            value = _validate_reference(token, value, grammar)
            remainder = separator + rest
            if key == "branch":
                return value, None, remainder
            return None, value, remainder

    # Bare reference: a commit hash is a rev, anything else a branch.
    value, separator, rest = fragment.partition("=")
    value = _validate_reference(token, value, grammar)
    if grammar.commit.match(value):
        return None, value, separator + rest
    return value, None, separator + rest


def _validate_reference(token: str, value: str, grammar: DependencyGrammar) -> str:
    if not value:
        raise MalformedDependency(token, "empty git reference")
    if not grammar.reference.match(value):
        raise MalformedDependency(token, f"`{value}` is not a valid git reference")
    return value


def parse_local_path(
    token: str,
    text: str,
    name: Optional[str],
    features: Tuple[str, ...],
    default_features: bool,
    grammar: DependencyGrammar = DEFAULT_GRAMMAR,
) -> LocalPath:
    """Parse `PATH[=version]` into a local path dependency."""
    path, separator, version_text = text.partition("=")
    version = validate_version(token, version_text, grammar) if separator else None

    if name is None:
        name = derive_path_name(token, path)

    return LocalPath(
        name=name,
        path=path,
        version=version,
        features=features,
        default_features=default_features,
    )


def derive_repository_name(token: str, url_path: Optional[str]) -> str:
    """Use the last URL path segment, without `.git`, as the crate name."""
    segments = [segment for segment in (url_path or "").split("/") if segment]
    name = segments[-1] if segments else ""
    if name.endswith(".git"):
        name = name[: -len(".git")]

    if not name:
        raise UnguessableName(
            token, "cannot guess a name from the repository URL, use `NAME=URL`"
        )
    return name


def derive_path_name(token: str, path: str) -> str:
    """Use the final path component as the crate name."""
    stripped = path.rstrip("/\\")
    component = re.split(r"[/\\]", stripped)[-1] if stripped else ""

    if component in ("", ".", "..", "~") or component.endswith(":"):
        raise UnguessableName(
            token, "cannot guess a name from the path, use `NAME=PATH`"
        )
    return component


def validate_name(
    token: str, name: str, grammar: DependencyGrammar = DEFAULT_GRAMMAR
) -> str:
    if not name:
        raise MalformedDependency(token, "missing dependency name")
    if not grammar.name.match(name):
        raise MalformedDependency(token, f"`{name}` is not a valid crate name")
    return name


def validate_version(
    token: str, version: str, grammar: DependencyGrammar = DEFAULT_GRAMMAR
) -> str:
    if not version:
        raise MalformedDependency(token, "missing version after `=`")
    if not grammar.version.match(version):
        raise MalformedDependency(
            token, f"`{version}` is not a valid version requirement"
        )
    return version


def _find_first(text: str, characters: str, start: int) -> int:
    positions = [text.find(char, start) for char in characters]
    found = [position for position in positions if position != -1]
    return min(found) if found else len(text)
