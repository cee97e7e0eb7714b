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

"""Pending package updates, read from simulated apt upgrades.

The caller runs `apt-get -s -o Debug::NoLocking=true upgrade` and `... dist-upgrade` and
hands over what they printed. This library only reads that output; it never runs apt.

```python
facts = updates.UpdateFacts.from_output(upgrade_output, dist_upgrade_output)
if facts.has_dist_updates:
    logger.info("dist-upgrade would change: %s", ", ".join(facts.package_dist_updates))
```

apt's simulation output is not a stable interface, so lines that are not recognised are
skipped rather than treated as errors.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable

logger = logging.getLogger(__name__)

# The unique Charmhub library identifier, never change it
LIBID = "b3e1a7c94f2d4e6a8c0d5f1e9a7b3c62"

# Increment this major API version when introducing breaking changes
LIBAPI = 0

# Increment this PATCH version before using `charmcraft publish-lib` or reset
# to 0 if you are raising the major API version
LIBPATCH = 1


# "Inst <package> [<old version>] (<new version> <archive> [<arch>])", then "Conf <package> ..."
MARKER_MATCHER = re.compile(r"^(?P<marker>Inst|Conf)\s+(?P<package>[^\s\[]+)")
SECURITY_MATCHER = re.compile(
    r" Debian-Security:| Ubuntu[^\s]+-security[, ]| gNewSense[^\s]+-security[, ]"
)


def classify_line(line: str) -> str | None:
    """Return the package a line of simulated upgrade output installs or upgrades.

    Returns:
        the package name, or None if the line is not an `Inst` or `Conf` line
    """
    result = MARKER_MATCHER.match(line)
    if result is None:
        return None
    return result.group("package")


def _first_seen(names: Iterable[str | None]) -> list[str]:
    """Collect names in the order they are first seen, dropping Nones and repeats."""
    seen: set[str] = set()
    result: list[str] = []
    for name in names:
        if name is None or name in seen:
            continue
        seen.add(name)
        result.append(name)
    return result


def parse_upgrade_output(output: str) -> list[str]:
    """Return the packages a simulated upgrade would install or upgrade, in apt's order."""
    packages = _first_seen(classify_line(line) for line in output.splitlines())
    logger.debug("found %d package update(s) in apt output", len(packages))
    return packages


def parse_security_updates(output: str) -> list[str]:
    """Return the packages a simulated upgrade would take from a security archive."""
    return _first_seen(
        classify_line(line)
        for line in output.splitlines()
        if line.startswith("Inst") and SECURITY_MATCHER.search(line)
    )


@dataclass(frozen=True)
class UpdateFacts:
    """Pending updates for `upgrade` and `dist-upgrade`.

    A package list is `None` when no output was reported for that upgrade mode, meaning no
    updates are pending at all; an empty list means apt ran and would change nothing.
    """

    package_updates: list[str] | None = None
    package_security_updates: list[str] | None = None
    package_dist_updates: list[str] | None = None
    package_dist_security_updates: list[str] | None = None

    @classmethod
    def from_output(
        cls, upgrade_output: str | None, dist_upgrade_output: str | None
    ) -> UpdateFacts:
        """Build the facts from the output of the two simulated upgrades.

        Args:
            upgrade_output: output of `apt-get -s upgrade`, or None if it was not available
            dist_upgrade_output: output of `apt-get -s dist-upgrade`, or None if it was not
                available
        """
        facts = {}
        if upgrade_output is not None:
            facts["package_updates"] = parse_upgrade_output(upgrade_output)
            facts["package_security_updates"] = parse_security_updates(upgrade_output)
        if dist_upgrade_output is not None:
            facts["package_dist_updates"] = parse_upgrade_output(dist_upgrade_output)
            facts["package_dist_security_updates"] = parse_security_updates(
                dist_upgrade_output
            )
        return cls(**facts)

    @property
    def has_updates(self) -> bool:
        """Returns whether `upgrade` output was reported."""
        return self.package_updates is not None

    @property
    def updates(self) -> int | None:
        """Returns the number of packages `upgrade` would change."""
        return len(self.package_updates) if self.package_updates is not None else None

    @property
    def security_updates(self) -> int | None:
        """Returns the number of security updates `upgrade` would install."""
        if self.package_security_updates is None:
            return None
        return len(self.package_security_updates)

    @property
    def has_dist_updates(self) -> bool:
        """Returns whether `dist-upgrade` output was reported."""
        return self.package_dist_updates is not None

    @property
    def dist_updates(self) -> int | None:
        """Returns the number of packages `dist-upgrade` would change."""
        if self.package_dist_updates is None:
            return None
        return len(self.package_dist_updates)

    @property
    def dist_security_updates(self) -> int | None:
        """Returns the number of security updates `dist-upgrade` would install."""
        if self.package_dist_security_updates is None:
            return None
        return len(self.package_dist_security_updates)
