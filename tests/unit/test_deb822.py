# Copyright 2026 Canonical Ltd.
# See LICENSE file for licensing details.

import textwrap

import pytest
from charms.apt_sources.v0 import source

MIRROR = "http://debian.mirror.iweb.ca/debian/"


@pytest.fixture
def renderer():
    return source.SourceRenderer(source.HostFacts(codename="stretch"))


@pytest.fixture
def complex_spec():
    return source.SourceSpec(
        name="my_source",
        format="deb822",
        types=["deb", "deb-src"],
        location=["http://fr.debian.org/debian", "http://de.debian.org/debian"],
        release=["stable", "stable-updates", "stable-backports"],
        repos=["main", "contrib", "non-free"],
        architecture=["amd64", "i386"],
        allow_unsigned=True,
        notify_update=False,
    )


def test_complex_stanza(renderer: source.SourceRenderer, complex_spec: source.SourceSpec):
    assert renderer.render(complex_spec) == textwrap.dedent(
        """\
        Enabled: yes
        Types: deb deb-src
        URIs: http://fr.debian.org/debian http://de.debian.org/debian
        Suites: stable stable-updates stable-backports
        Components: main contrib non-free
        Architectures: amd64 i386
        Trusted: yes
        """
    )
    assert not renderer.setting(complex_spec).notify_update


def test_single_value_example(renderer: source.SourceRenderer):
    spec = source.SourceSpec(
        name="my_source",
        format="deb822",
        types=["deb", "deb-src"],
        location=[MIRROR],
        release="sid",
        repos=["testing"],
        architecture=["amd64", "i386"],
        allow_unsigned=True,
        comment="foo",
    )
    content = renderer.render(spec)
    assert "Types: deb deb-src\n" in content
    assert "Architectures: amd64 i386\n" in content
    assert "Trusted: yes\n" in content
    assert "Enabled: yes\n" in content
    assert "foo" not in content


def test_release_defaults_to_codename(renderer: source.SourceRenderer):
    spec = source.SourceSpec(name="my_source", format="deb822", location=MIRROR)
    assert "Suites: stretch\n" in renderer.render(spec)


def test_types_from_include(renderer: source.SourceRenderer):
    spec = source.SourceSpec(
        name="my_source", format="deb822", location=MIRROR, include={"src": True}
    )
    assert "Types: deb deb-src\n" in renderer.render(spec)

    spec = source.SourceSpec(
        name="my_source", format="deb822", location=MIRROR, include={"deb": False, "src": True}
    )
    assert "Types: deb-src\n" in renderer.render(spec)


def test_no_types_is_invalid(renderer: source.SourceRenderer):
    spec = source.SourceSpec(
        name="my_source", format="deb822", location=MIRROR, include={"deb": False}
    )
    with pytest.raises(source.InvalidSourceError):
        renderer.render(spec)


def test_unknown_type_is_invalid():
    with pytest.raises(source.InvalidSourceError):
        source.SourceSpec(name="my_source", format="deb822", types=["rpm"])


def test_optional_fields(renderer: source.SourceRenderer):
    spec = source.SourceSpec(
        name="my_source",
        format="deb822",
        location=MIRROR,
        release="unstable",
        keyring="/usr/share/keyrings/debian.gpg",
        allow_insecure=True,
        check_valid_until=False,
    )
    assert renderer.render(spec) == textwrap.dedent(
        """\
        Enabled: yes
        Types: deb
        URIs: http://debian.mirror.iweb.ca/debian/
        Suites: unstable
        Components: main
        Signed-By: /usr/share/keyrings/debian.gpg
        Allow-Insecure: yes
        Check-Valid-Until: false
        """
    )


def test_trusted_is_never_no(renderer: source.SourceRenderer):
    spec = source.SourceSpec(
        name="my_source", format="deb822", location=MIRROR, allow_unsigned=False
    )
    assert "Trusted" not in renderer.render(spec)


def test_list_backwards_compatibility(renderer: source.SourceRenderer):
    spec = source.SourceSpec.from_dict(
        "my_source",
        {
            "source_format": "sources",
            "location": MIRROR,
            "release": "unstable",
            "repos": "main contrib non-free",
            "key": {"id": "A1BD8E9D78F7FE5C3E65D8AF8B48AD6246925553", "server": "keyserver.ubuntu.com"},
            "pin": "-10",
        },
    )
    setting = renderer.setting(spec)
    assert setting.identifier == "sources-my_source"
    assert setting.notify_update
    assert "Components: main contrib non-free\n" in setting.content
    assert setting.pin.priority == "-10"


def test_flat_repository_has_no_components(renderer: source.SourceRenderer):
    spec = source.SourceSpec(name="my_source", format="deb822", location=MIRROR, release="./")
    content = renderer.render(spec)
    assert "Suites: ./\n" in content
    assert "Components" not in content


def test_empty_repos_omit_components(renderer: source.SourceRenderer):
    spec = source.SourceSpec(
        name="my_source", format="deb822", location=MIRROR, release="sid", repos=[]
    )
    assert "Components" not in renderer.render(spec)


def test_absent_stanza_is_disabled():
    spec = source.SourceSpec(
        name="my_source", format="deb822", ensure="absent", location=MIRROR, release="sid"
    )
    assert source.Deb822Renderer().render(spec).startswith("Enabled: no\n")


def test_round_trip(renderer: source.SourceRenderer, complex_spec: source.SourceSpec):
    [options] = source.parse_deb822(renderer.render(complex_spec))

    assert tuple(options["Types"].split()) == complex_spec.types
    assert tuple(options["URIs"].split()) == complex_spec.location
    assert tuple(options["Suites"].split()) == complex_spec.release
    assert tuple(options["Components"].split()) == complex_spec.repos
    assert tuple(options["Architectures"].split()) == complex_spec.architecture


def test_parse_deb822_stanzas_and_comments():
    text = textwrap.dedent(
        """\
        # main archive
        Types: deb
        URIs: http://archive.ubuntu.com/ubuntu
        Suites: noble noble-updates
        Components: main universe

        Types: deb
        URIs: http://security.ubuntu.com/ubuntu
        Suites: noble-security
        Components: main  # only main
        Signed-By:
         -----BEGIN PGP PUBLIC KEY BLOCK-----
         .
         -----END PGP PUBLIC KEY BLOCK-----
        """
    )
    first, second = source.parse_deb822(text)
    assert first["Suites"] == "noble noble-updates"
    assert second["Components"] == "main"
    assert second["Signed-By"].splitlines()[1] == " -----BEGIN PGP PUBLIC KEY BLOCK-----"


def test_parse_deb822_rejects_leading_continuation():
    with pytest.raises(source.InvalidSourceError):
        source.parse_deb822(" dangling\nTypes: deb\n")
