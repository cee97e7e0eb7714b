# Copyright 2026 Canonical Ltd.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
# http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Declarations of Debian/Ubuntu package repositories ("sources").

This module turns a structured description of an apt repository into the text apt expects,
either as one-line-style `sources.list` entries or as a deb822-style stanza for a `.sources`
file. It also composes the signing-key and pinning directives that accompany a source, so
that whichever tool manages keys and preferences can apply them before the source is used.

Nothing here writes to `/etc/apt`: rendering is a pure function of a `SourceSpec` and the
host facts handed to `SourceRenderer`.

To render a one-line-style source:

```python
facts = source.HostFacts.from_os_release()
renderer = source.SourceRenderer(facts)

spec = source.SourceSpec(
    name="mirror",
    location="http://debian.mirror.iweb.ca/debian/",
    release="sid",
    repos=["testing"],
    architecture="x86_64",
    allow_unsigned=True,
    comment="foo",
)
renderer.render(spec)
# '# foo\\ndeb [arch=x86_64 trusted=yes] http://debian.mirror.iweb.ca/debian/ sid testing\\n'
```

The same definition becomes a deb822 stanza by asking for that format:

```python
spec = source.SourceSpec(
    name="mirror",
    format="deb822",
    types=["deb", "deb-src"],
    location=["http://fr.debian.org/debian", "http://de.debian.org/debian"],
    release=["stable", "stable-updates"],
    repos=["main", "contrib"],
    architecture=["amd64", "i386"],
)
setting = renderer.setting(spec)
setting.identifier  # 'sources-mirror'
setting.filename  # '/etc/apt/sources.list.d/mirror.sources'
```

Definitions can also be kept in YAML, keyed by source name:

```yaml
sources:
  puppetlabs:
    location: http://apt.puppetlabs.com
    repos: main
    key: 6F6B15509CF8E59E6E469F327F438280EF8D349F
    pin: 10
```

```python
try:
    for spec in source.load_sources("/etc/charm/sources.yaml"):
        setting = renderer.setting(spec)
except source.MissingReleaseError as e:
    logger.error("cannot resolve a release: %s", e.message)
except source.InvalidSourceError as e:
    logger.error("invalid source definition: %s", e.message)
```
"""

from __future__ import annotations

import dataclasses
import logging
import os
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, Iterator, Mapping
from urllib.parse import urlparse

import yaml

logger = logging.getLogger(__name__)

# The unique Charmhub library identifier, never change it
LIBID = "5d2c8f0a1b7e4c3d9a6f2e8b7c1d4a90"

# Increment this major API version when introducing breaking changes
LIBAPI = 0

# Increment this PATCH version before using `charmcraft publish-lib` or reset
# to 0 if you are raising the major API version
LIBPATCH = 1

PYDEPS = ["PyYAML"]


VALID_SOURCE_TYPES = ("deb", "deb-src")
OPTIONS_MATCHER = re.compile(r"\[.*?\]")
SOURCES_DIR = "/etc/apt/sources.list.d"
PREFERENCES_DIR = "/etc/apt/preferences.d"
OS_RELEASE = "/etc/os-release"
DEFAULT_KEY_SERVER = "keyserver.ubuntu.com"
CODENAME_FACT = "os.distro.codename"
FILE_HEADER = f"""# This file was produced by the apt_sources lib v{LIBAPI}.{LIBPATCH}.
# Local changes will be overwritten.
"""

KEY_FIELDS = ("id", "ensure", "server", "content", "source", "weak_ssl", "options")
KEY_ENSURE_VALUES = ("present", "absent", "refreshed")
PIN_FIELDS = (
    "ensure",
    "priority",
    "release",
    "explanation",
    "origin",
    "version",
    "packages",
    "codename",
    "release_version",
    "component",
    "originator",
    "label",
    "order",
)

# one-line-style option name -> deb822 field, in stanza order
_DEB822_OPTION_FIELDS = (
    ("arch", "Architectures"),
    ("signed-by", "Signed-By"),
    ("trusted", "Trusted"),
    ("allow-insecure", "Allow-Insecure"),
    ("check-valid-until", "Check-Valid-Until"),
)


class Error(Exception):
    """Base class of most errors raised by this library."""

    def __repr__(self):
        """Represent the Error."""
        return f"<{type(self).__module__}.{type(self).__name__} {self.args}>"

    @property
    def name(self):
        """Return a string representation of the model plus class."""
        return f"<{type(self).__module__}.{type(self).__name__}>"

    @property
    def message(self):
        """Return the message passed as an argument."""
        return self.args[0]


class InvalidSourceError(Error):
    """Exceptions for invalid source definitions."""


class MissingLocationError(InvalidSourceError):
    """A present source was declared without a location."""


class MissingReleaseError(InvalidSourceError):
    """No release was given and the host fact that provides one is unavailable."""

    def __init__(self, message: str = "", *, fact: str) -> None:
        super().__init__(message, fact)
        self.fact = fact


class InvalidPinTypeError(InvalidSourceError):
    """A pin was given in a form that cannot describe a priority."""


class UnknownFormatError(InvalidSourceError):
    """A source format other than one-line-style or deb822 was requested."""


class Ensure(Enum):
    """Whether a source should exist on the system."""

    Present = "present"
    Absent = "absent"


class SourceFormat(Enum):
    """The file formats a source can be rendered in."""

    Legacy = "legacy"
    Deb822 = "deb822"


_FORMAT_ALIASES = {"list": SourceFormat.Legacy, "sources": SourceFormat.Deb822}


def _coerce_ensure(value: Ensure | str) -> Ensure:
    if isinstance(value, Ensure):
        return value
    try:
        return Ensure(value)
    except ValueError:
        raise InvalidSourceError(
            f"ensure must be one of present or absent, got {value!r}"
        ) from None


def _coerce_format(value: SourceFormat | str) -> SourceFormat:
    if isinstance(value, SourceFormat):
        return value
    if value in _FORMAT_ALIASES:
        return _FORMAT_ALIASES[value]
    try:
        return SourceFormat(value)
    except ValueError:
        raise UnknownFormatError(
            f"unknown source format {value!r}, expected one of legacy or deb822"
        ) from None


def _as_tuple(value: str | Iterable[str] | None) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(value)


@dataclass(frozen=True)
class Include:
    """Which of the binary (`deb`) and source (`deb-src`) entries a source provides."""

    deb: bool = True
    src: bool = False

    @classmethod
    def from_mapping(cls, mapping: Mapping[str, bool]) -> Include:
        """Build an `Include` from a partial mapping, keeping defaults for missing keys."""
        unknown = sorted(set(mapping) - {"deb", "src"})
        if unknown:
            raise InvalidSourceError(f"unknown include flag(s): {', '.join(unknown)}")
        return cls(**mapping)

    @property
    def types(self) -> tuple[str, ...]:
        """Source types implied by these flags, binary first."""
        return tuple(t for t, wanted in zip(VALID_SOURCE_TYPES, (self.deb, self.src)) if wanted)


@dataclass(frozen=True)
class KeySpec:
    """A signing key for a source, either a bare key id or a full key definition.

    Composers branch on `kind` ("shorthand" or "structured") rather than on the shape of
    the caller's input.
    """

    kind: str
    fields: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def shorthand(cls, key_id: str) -> KeySpec:
        """A key referenced by id only."""
        return cls("shorthand", {"id": key_id})

    @classmethod
    def structured(cls, mapping: Mapping[str, Any]) -> KeySpec:
        """A key given with any of the fields in `KEY_FIELDS`."""
        return cls("structured", dict(mapping))

    @property
    def id(self) -> str:
        """Return the key id."""
        return self.fields["id"]


@dataclass(frozen=True)
class PinSpec:
    """A pin for a source, either a bare priority or a full preferences definition."""

    kind: str
    value: str | int | float | None = None
    fields: Mapping[str, Any] = field(default_factory=dict, hash=False)

    @classmethod
    def shorthand(cls, priority: str | int | float) -> PinSpec:
        """A pin given as a priority only."""
        return cls("shorthand", value=priority)

    @classmethod
    def structured(cls, mapping: Mapping[str, Any]) -> PinSpec:
        """A pin given with any of the fields in `PIN_FIELDS`."""
        return cls("structured", fields=dict(mapping))


def _classify_key(value: Any) -> KeySpec | None:
    if value is None or isinstance(value, KeySpec):
        return value
    if isinstance(value, str):
        if not value:
            raise InvalidSourceError("key id must not be empty")
        return KeySpec.shorthand(value)
    if isinstance(value, Mapping):
        unknown = sorted(set(value) - set(KEY_FIELDS))
        if unknown:
            raise InvalidSourceError(f"unknown key field(s): {', '.join(unknown)}")
        if not value.get("id"):
            raise InvalidSourceError("key definitions must contain an id")
        if value.get("ensure", "present") not in KEY_ENSURE_VALUES:
            raise InvalidSourceError(
                f"key ensure must be one of {', '.join(KEY_ENSURE_VALUES)}, "
                f"got {value['ensure']!r}"
            )
        return KeySpec.structured(value)
    raise InvalidSourceError(f"key expects an id or a key definition, got {value!r}")


def _classify_pin(value: Any) -> PinSpec | None:
    if value is None or isinstance(value, PinSpec):
        return value
    # bool is an int subclass, so it has to be rejected first
    if isinstance(value, bool):
        raise InvalidPinTypeError(
            f"pin expects a value of type priority or pin definition, got {value!r}"
        )
    if isinstance(value, (str, int, float)):
        return PinSpec.shorthand(value)
    if isinstance(value, Mapping):
        unknown = sorted(set(value) - set(PIN_FIELDS))
        if unknown:
            raise InvalidSourceError(f"unknown pin field(s): {', '.join(unknown)}")
        return PinSpec.structured(value)
    raise InvalidPinTypeError(
        f"pin expects a value of type priority or pin definition, got {value!r}"
    )


@dataclass(frozen=True)
class SourceSpec:
    """The complete description of one repository entry.

    Loose caller input is normalised on construction: a bare string is accepted wherever a
    sequence is expected, `format` accepts the `list` and `sources` aliases, and `key` and
    `pin` become tagged `KeySpec` and `PinSpec` values. A `release` of `None` is resolved
    from the host's distribution codename by `SourceRenderer`.

    Raises:
        InvalidPinTypeError: if `pin` is a boolean
        UnknownFormatError: if `format` is not one-line-style or deb822
        InvalidSourceError: for any other malformed field
    """

    name: str
    ensure: Ensure = Ensure.Present
    format: SourceFormat = SourceFormat.Legacy
    comment: str | None = None
    location: tuple[str, ...] = ()
    release: tuple[str, ...] | None = None
    repos: tuple[str, ...] = ("main",)
    architecture: tuple[str, ...] = ()
    types: tuple[str, ...] = ()
    include: Include = Include()
    allow_unsigned: bool | None = None
    allow_insecure: bool | None = None
    check_valid_until: bool | None = None
    keyring: str | None = None
    key: KeySpec | None = None
    pin: PinSpec | None = None
    notify_update: bool | None = None

    def __post_init__(self):
        set_ = object.__setattr__
        set_(self, "ensure", _coerce_ensure(self.ensure))
        set_(self, "format", _coerce_format(self.format))
        set_(self, "location", _as_tuple(self.location))
        if self.release is not None:
            set_(self, "release", _as_tuple(self.release))
        if isinstance(self.repos, str) and self.format is SourceFormat.Deb822:
            # a space separated component string predates list support in deb822
            set_(self, "repos", tuple(self.repos.split()))
        else:
            set_(self, "repos", _as_tuple(self.repos))
        set_(self, "architecture", _as_tuple(self.architecture))
        set_(self, "types", _as_tuple(self.types))
        invalid_types = [t for t in self.types if t not in VALID_SOURCE_TYPES]
        if invalid_types:
            raise InvalidSourceError(
                f"source types must be deb or deb-src, got {', '.join(invalid_types)}"
            )
        if self.include is None:
            set_(self, "include", Include())
        elif isinstance(self.include, Mapping):
            set_(self, "include", Include.from_mapping(self.include))
        set_(self, "key", _classify_key(self.key))
        set_(self, "pin", _classify_pin(self.pin))
        if self.keyring and self.allow_unsigned:
            logger.warning(
                "source '%s' sets a keyring and allow_unsigned; apt will not verify it",
                self.name,
            )

    @classmethod
    def from_dict(cls, name: str, params: Mapping[str, Any]) -> SourceSpec:
        """Build a `SourceSpec` from a parameter mapping, as found in YAML definitions.

        Args:
            name: the unique name of the source
            params: source parameters; `source_format` is accepted as an alias of `format`

        Raises:
            InvalidSourceError: if a parameter is unknown or malformed
        """
        params = dict(params)
        if "source_format" in params:
            params["format"] = params.pop("source_format")
        known = {f.name for f in dataclasses.fields(cls)} - {"name"}
        unknown = sorted(set(params) - known)
        if unknown:
            raise InvalidSourceError(
                f"unknown parameter(s) for source '{name}': {', '.join(unknown)}"
            )
        return cls(name=name, **params)

    @property
    def identifier(self) -> str:
        """Return the identifier the rendered setting is known by."""
        prefix = "list" if self.format is SourceFormat.Legacy else "sources"
        return f"{prefix}-{self.name}"

    @property
    def filename(self) -> str:
        """Return the file this source belongs in."""
        extension = "list" if self.format is SourceFormat.Legacy else "sources"
        return os.path.join(SOURCES_DIR, f"{self.name}.{extension}")


@dataclass(frozen=True)
class HostFacts:
    """Facts about the host that supply defaults for a source."""

    codename: str | None = None
    architecture: str | None = None

    @classmethod
    def from_os_release(
        cls, path: str | None = None, architecture: str | None = None
    ) -> HostFacts:
        """Read the distribution codename from an os-release file.

        Args:
            path: the os-release file, `/etc/os-release` by default
            architecture: the host architecture, if the caller knows it
        """
        path = path or OS_RELEASE
        values: dict[str, str] = {}
        try:
            with open(path) as f:
                for line in f:
                    key, sep, value = line.strip().partition("=")
                    if sep:
                        values[key] = value.strip("\"'")
        except FileNotFoundError:
            logger.warning("'%s' not found, the distribution codename is unknown", path)
        codename = values.get("VERSION_CODENAME") or values.get("UBUNTU_CODENAME") or None
        logger.debug("host codename from '%s': %s", path, codename)
        return cls(codename=codename, architecture=architecture)


def _option_table(spec: SourceSpec) -> list[tuple[str, tuple[str, ...]]]:
    """Return the modifiers of a source as ordered (option, values) pairs.

    The order is the one-line-style clause order. Option names use the one-line-style
    spelling; `Deb822Renderer` maps them onto stanza fields.
    """
    options: list[tuple[str, tuple[str, ...]]] = []
    if spec.architecture:
        options.append(("arch", spec.architecture))
    if spec.allow_unsigned:
        options.append(("trusted", ("yes",)))
    # true is apt's default, so only an explicit false is written
    if spec.check_valid_until is False:
        options.append(("check-valid-until", ("false",)))
    if spec.allow_insecure:
        options.append(("allow-insecure", ("yes",)))
    if spec.keyring:
        options.append(("signed-by", (spec.keyring,)))
    return options


def make_options_string(spec: SourceSpec) -> str:
    """Generate the one-line-style options clause for a source.

    Returns:
        the bracketed clause followed by a space, or an empty string if no options are set
    """
    options = _option_table(spec)
    if not options:
        return ""
    pairs = (f"{k}={','.join(v)}" for k, v in options)
    return "[{}] ".format(" ".join(pairs))


def _check_location(spec: SourceSpec) -> None:
    if not spec.location:
        raise MissingLocationError("cannot create a source entry without specifying a location")


class LegacyRenderer:
    """Render a source as one-line-style `sources.list` entries."""

    def render(self, spec: SourceSpec) -> str:
        """Return the `deb` and/or `deb-src` lines for a source with a resolved release.

        Raises:
            MissingLocationError: if the source has no location
            InvalidSourceError: if more than one location or release is given
        """
        _check_location(spec)
        if len(spec.location) != 1:
            raise InvalidSourceError(
                f"one-line-style sources take exactly one location, got {len(spec.location)}"
            )
        if spec.release is None or len(spec.release) != 1:
            raise InvalidSourceError(
                f"one-line-style sources take exactly one release, got {spec.release!r}"
            )
        [location] = spec.location
        [release] = spec.release
        types = spec.include.types
        if not types:
            logger.warning("source '%s' includes neither deb nor deb-src entries", spec.name)
            return ""

        # a release ending in "/" is a path to a flat repository, which has no components
        if release.endswith("/"):
            components = release
        else:
            components = " ".join((release, *spec.repos))
        options = make_options_string(spec)

        lines = []
        comment = spec.name if spec.comment is None else spec.comment
        if comment:
            lines.append(f"# {comment}")
        lines.extend(f"{repotype} {options}{location} {components}" for repotype in types)
        return "\n".join(lines) + "\n"


class Deb822Renderer:
    """Render a source as a deb822-style stanza."""

    def render(self, spec: SourceSpec) -> str:
        """Return the stanza for a source with a resolved release.

        Raises:
            MissingLocationError: if the source has no location
            InvalidSourceError: if no suite or no source type is left to render
        """
        _check_location(spec)
        if not spec.release:
            raise InvalidSourceError("deb822 sources need at least one suite")
        types = spec.types or spec.include.types
        if not types:
            raise InvalidSourceError(
                f"source '{spec.name}' has no types and includes neither deb nor deb-src"
            )

        fields = [
            ("Enabled", "yes" if spec.ensure is Ensure.Present else "no"),
            ("Types", " ".join(types)),
            ("URIs", " ".join(spec.location)),
            ("Suites", " ".join(spec.release)),
        ]
        # Components must be omitted when the suite is an exact path
        flat = len(spec.release) == 1 and spec.release[0].endswith("/")
        if spec.repos and not flat:
            fields.append(("Components", " ".join(spec.repos)))
        options = dict(_option_table(spec))
        for option, field_name in _DEB822_OPTION_FIELDS:
            if option in options:
                fields.append((field_name, " ".join(options[option])))
        return "".join(f"{key}: {value}\n" for key, value in fields)


@dataclass(frozen=True)
class PinDirective:
    """A preferences entry for the pinning collaborator.

    `before` names the setting that must not become active until this pin is applied.
    """

    name: str
    before: str
    ensure: Ensure = Ensure.Present
    priority: str | int | float = 0
    packages: str = "*"
    order: int = 50
    explanation: str | None = None
    release: str | None = None
    origin: str | None = None
    version: str | None = None
    codename: str | None = None
    release_version: str | None = None
    component: str | None = None
    originator: str | None = None
    label: str | None = None

    @property
    def filename(self) -> str:
        """Return the preferences file this pin belongs in."""
        return os.path.join(PREFERENCES_DIR, f"{self.name}.pref")


@dataclass(frozen=True)
class KeyDirective:
    """A signing key for the key management collaborator."""

    id: str
    label: str
    before: str
    ensure: str = "present"
    server: str | None = DEFAULT_KEY_SERVER
    content: str | None = None
    source: str | None = None
    weak_ssl: bool = False
    options: str | None = None


def _origin_from_location(location: tuple[str, ...]) -> str | None:
    """Return the host part of the first location, if it parses as a URI.

    The host is kept as written, without any user info or port.
    """
    if not location:
        return None
    try:
        netloc = urlparse(location[0]).netloc
    except ValueError:
        return None
    host = netloc.rpartition("@")[2]
    if host.startswith("["):
        return host[1:].partition("]")[0] or None
    return host.partition(":")[0] or None


def compose_pin(spec: SourceSpec) -> PinDirective | None:
    """Turn the pin of a source into a `PinDirective`.

    A bare priority pins the origin the source is served from; a pin definition is taken
    as given.
    """
    if spec.pin is None:
        return None
    if spec.pin.kind == "shorthand":
        fields: dict[str, Any] = {"priority": spec.pin.value}
        origin = _origin_from_location(spec.location)
        if origin:
            fields["origin"] = origin
        else:
            logger.debug("no origin can be derived from location %s", spec.location)
    else:
        fields = dict(spec.pin.fields)
    fields["ensure"] = _coerce_ensure(fields.get("ensure", spec.ensure))
    return PinDirective(name=spec.name, before=spec.identifier, **fields)


def compose_key(spec: SourceSpec) -> KeyDirective | None:
    """Turn the key of a source into a `KeyDirective`."""
    if spec.key is None:
        return None
    fields = {"server": DEFAULT_KEY_SERVER, **spec.key.fields}
    key_id = fields.pop("id")
    return KeyDirective(
        id=key_id,
        label=f"Add key: {key_id} from source {spec.name}",
        before=spec.identifier,
        **fields,
    )


@dataclass(frozen=True)
class SourceSetting:
    """Everything the collaborators need to put a source in place.

    `content` is `None` for absent sources: the setting only identifies what to remove.
    """

    identifier: str
    filename: str
    ensure: Ensure
    content: str | None
    notify_update: bool
    pin: PinDirective | None = None
    key: KeyDirective | None = None

    @property
    def file_content(self) -> str | None:
        """Return the content with the managed file header, ready to be written."""
        if self.content is None:
            return None
        return FILE_HEADER + self.content


class SourceRenderer:
    """Render sources in the format each one asks for.

    Typical usage:

        renderer = SourceRenderer(HostFacts.from_os_release())
        setting = renderer.setting(SourceSpec(name="example", location="https://example.com"))

    Args:
        facts: host facts that provide a default release (and, optionally, architecture)
        architecture_fallback: use `facts.architecture` for one-line-style sources that
            include `deb-src` entries and have no architecture of their own
    """

    def __init__(self, facts: HostFacts, architecture_fallback: bool = False):
        self._facts = facts
        self._architecture_fallback = architecture_fallback
        self._renderers = {
            SourceFormat.Legacy: LegacyRenderer(),
            SourceFormat.Deb822: Deb822Renderer(),
        }

    def resolve(self, spec: SourceSpec) -> SourceSpec:
        """Return a copy of `spec` with defaults taken from the host facts.

        Raises:
            MissingReleaseError: if `spec` has no release and the codename fact is unavailable
        """
        changes: dict[str, Any] = {}
        if spec.release is None:
            if not self._facts.codename:
                raise MissingReleaseError(
                    f"{CODENAME_FACT} fact not available: release parameter required",
                    fact=CODENAME_FACT,
                )
            logger.debug("source '%s' defaults to release '%s'", spec.name, self._facts.codename)
            changes["release"] = (self._facts.codename,)
        if (
            self._architecture_fallback
            and not spec.architecture
            and spec.format is SourceFormat.Legacy
            and spec.include.src
            and self._facts.architecture
        ):
            changes["architecture"] = (self._facts.architecture,)
        return dataclasses.replace(spec, **changes) if changes else spec

    def render(self, spec: SourceSpec) -> str:
        """Render a source in its own format.

        Raises:
            MissingLocationError: if the source has no location
            MissingReleaseError: if no release is given or known for the host
            InvalidSourceError: if the source cannot be expressed in its format
        """
        _check_location(spec)
        resolved = self.resolve(spec)
        content = self._renderers[resolved.format].render(resolved)
        logger.info("rendered %s source '%s'", resolved.format.value, resolved.name)
        return content

    def setting(self, spec: SourceSpec) -> SourceSetting:
        """Render a source together with the directives that accompany it.

        Absent sources are not rendered, so they need neither a location nor a release.
        """
        pin = compose_pin(spec)
        key = compose_key(spec)
        content = self.render(spec) if spec.ensure is Ensure.Present else None
        return SourceSetting(
            identifier=spec.identifier,
            filename=spec.filename,
            ensure=spec.ensure,
            content=content,
            notify_update=spec.notify_update is not False,
            pin=pin,
            key=key,
        )


def load_sources(path: str) -> list[SourceSpec]:
    """Load source definitions from a YAML file.

    The file holds a mapping of source names to parameters, optionally nested under a
    single top-level `sources` key.

    Raises:
        InvalidSourceError: if the file does not hold such a mapping or a definition is
            invalid
    """
    with open(path) as f:
        data = yaml.safe_load(f) or {}
    if isinstance(data, Mapping) and list(data) == ["sources"]:
        data = data["sources"] or {}
    if not isinstance(data, Mapping):
        raise InvalidSourceError(f"source definitions in '{path}' must be a mapping")

    specs = []
    for name, params in data.items():
        if not isinstance(params, Mapping):
            raise InvalidSourceError(
                f"definition of source '{name}' in '{path}' must be a mapping"
            )
        specs.append(SourceSpec.from_dict(str(name), params))
    logger.info("loaded %d source definition(s) from %s", len(specs), path)
    return specs


@dataclass(frozen=True)
class SourceLine:
    """A parsed one-line-style entry."""

    enabled: bool
    repotype: str
    uri: str
    release: str
    components: tuple[str, ...]
    options: Mapping[str, str]


def parse_source_line(line: str) -> SourceLine:
    """Parse a line in a sources.list file.

    Raises:
        InvalidSourceError: if the line is not a repository entry
    """
    enabled = True
    line = line.strip()
    if line.startswith("#"):
        enabled = False
        line = line[1:]

    # Check for "#" in the line and treat a part after it as a comment then strip it off.
    i = line.find("#")
    if i > 0:
        line = line[:i]

    options: dict[str, str] = {}
    for v in re.findall(OPTIONS_MATCHER, line):
        options.update(o.split("=", 1) for o in v.strip("[]").split())
    chunks = re.sub(OPTIONS_MATCHER, "", line).split()
    if len(chunks) < 3 or chunks[0] not in VALID_SOURCE_TYPES:
        raise InvalidSourceError(f"not a repository entry: {line.strip()!r}")
    return SourceLine(enabled, chunks[0], chunks[1], chunks[2], tuple(chunks[3:]), options)


def _iter_deb822_stanzas(lines: Iterable[str]) -> Iterator[list[str]]:
    """Given lines from a deb822 format file, yield the lines of each stanza.

    Comments are stripped out; blank lines separate stanzas.
    """
    current_stanza: list[str] = []
    for line in lines:
        if not line.strip():
            if current_stanza:
                yield current_stanza
                current_stanza = []
            continue
        content, _delim, _comment = line.partition("#")
        if content.strip():  # skip (potentially indented) comment line
            current_stanza.append(content.rstrip())  # preserve indent
    if current_stanza:
        yield current_stanza


def _deb822_stanza_to_options(lines: Iterable[str]) -> dict[str, str]:
    """Turn the lines of a stanza into a dict of (potentially multiline) field values."""
    parts: dict[str, list[str]] = {}
    current = None
    for line in lines:
        if line.startswith(" "):  # continuation of previous key's value
            if current is None:
                raise InvalidSourceError(f"continuation line before any field: {line!r}")
            parts[current].append(line.rstrip())
            continue
        raw_key, _, raw_value = line.partition(":")
        current = raw_key.strip()
        parts[current] = [raw_value.strip()]
    return {k: "\n".join(v) for k, v in parts.items()}


def parse_deb822(lines: str | Iterable[str]) -> list[dict[str, str]]:
    """Parse deb822 text into one field mapping per stanza.

    Args:
        lines: the text of a `.sources` file, or an iterable of its lines
    """
    if isinstance(lines, str):
        lines = lines.splitlines()
    return [_deb822_stanza_to_options(stanza) for stanza in _iter_deb822_stanzas(lines)]
