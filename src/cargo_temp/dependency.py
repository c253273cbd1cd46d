# In src/cargo_temp/dependency.py
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Tuple, Union

NO_DEFAULT_FEATURES = "no-default-features"

# Relative (`./`, `../`), absolute, home or drive-letter path.
PATH_SYNTAX = re.compile(r"^(?:\.\.?(?:[/\\]|$)|/|\\|~[/\\]|[A-Za-z]:[/\\])")


class DependencyKind(Enum):
    """Where a dependency is resolved from."""

    REGISTRY = "registry"
    GIT = "git"
    PATH = "path"


class DependencyParseError(ValueError):
    """A dependency token could not be turned into a dependency."""

    def __init__(self, token: str, reason: str):
        self.token = token
        self.reason = reason
        super().__init__(f"invalid dependency `{token}`: {reason}")


class MalformedDependency(DependencyParseError):
    """The token matches none of the dependency forms."""


class UnguessableName(DependencyParseError):
    """A URL or path token has no segment a name can be derived from."""


def _trailer(features: Tuple[str, ...], default_features: bool) -> str:
    tail = "".join(f"+{feature}" for feature in features)
    if not default_features:
        tail += f"+{NO_DEFAULT_FEATURES}"
    return tail


def _check_features(features: Tuple[str, ...]) -> None:
    if NO_DEFAULT_FEATURES in features:
        raise ValueError(
            f"`{NO_DEFAULT_FEATURES}` is reserved, use default_features=False"
        )


@dataclass(frozen=True)
class RegistryPackage:
    """A dependency resolved by name from crates.io."""

    name: str
    version: Optional[str] = None
    features: Tuple[str, ...] = field(default_factory=tuple)
    default_features: bool = True

    def __post_init__(self):
        if not self.name:
            raise ValueError("dependency name must not be empty")
        object.__setattr__(self, "features", tuple(self.features))
        _check_features(self.features)

    @property
    def kind(self) -> DependencyKind:
        return DependencyKind.REGISTRY

    def to_token(self) -> str:
        """Render the canonical command-line token for this dependency."""
        token = self.name
        if self.version is not None:
            token += f"={self.version}"
        return token + _trailer(self.features, self.default_features)


@dataclass(frozen=True)
class GitRepository:
    """A dependency fetched from a git remote, optionally pinned."""

    name: str
    url: str
    version: Optional[str] = None
    features: Tuple[str, ...] = field(default_factory=tuple)
    default_features: bool = True
    branch: Optional[str] = None
    rev: Optional[str] = None

    def __post_init__(self):
        if not self.name:
            raise ValueError("dependency name must not be empty")
        if self.branch is not None and self.rev is not None:
            raise ValueError("a git dependency takes either a branch or a rev")
        object.__setattr__(self, "features", tuple(self.features))
        _check_features(self.features)

    @property
    def kind(self) -> DependencyKind:
        return DependencyKind.GIT

    def to_token(self) -> str:
        """Render the canonical command-line token for this dependency."""
        token = f"{self.name}={self.url}"
        if self.branch is not None:
            token += f"#branch={self.branch}"
        elif self.rev is not None:
            token += f"#rev={self.rev}"
        if self.version is not None:
            token += f"={self.version}"
        return token + _trailer(self.features, self.default_features)


@dataclass(frozen=True)
class LocalPath:
    """A dependency resolved from the local filesystem."""

    name: str
    path: str
    version: Optional[str] = None
    features: Tuple[str, ...] = field(default_factory=tuple)
    default_features: bool = True

    def __post_init__(self):
        if not self.name:
            raise ValueError("dependency name must not be empty")
        object.__setattr__(self, "features", tuple(self.features))
        _check_features(self.features)
        if not PATH_SYNTAX.match(self.path):
            raise ValueError(
                f"path `{self.path}` must start with `./`, `../`, `/`, `~/` or a drive"
            )
        if "=" in self.path or "+" in self.path:
            raise ValueError(f"path `{self.path}` must not contain `=` or `+`")

    @property
    def kind(self) -> DependencyKind:
        return DependencyKind.PATH

    def to_token(self) -> str:
        """Render the canonical command-line token for this dependency."""
        token = f"{self.name}={self.path}"
        if self.version is not None:
            token += f"={self.version}"
        return token + _trailer(self.features, self.default_features)


Dependency = Union[RegistryPackage, GitRepository, LocalPath]
