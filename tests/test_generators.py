"""Test policy artifact generation."""

import tomllib
from dataclasses import replace

import pytest

from relay_control.core.errors import GenerationError
from relay_control.core.models import (
    AppSettings, ArtifactKind, Domain, Sender, Snapshot, WarmupPlan, WRITE_ORDER
)
from relay_control.generator import (
    generate_all,
    generate_dkim_data,
    generate_init_lua,
    generate_listener_domains,
    generate_queues,
    generate_sources,
    pool_name,
    render_all,
    source_name,
)
from relay_control.generator.naming import tenant_key


def make_sender(domain_id, domain, local_part, **kwargs):
    return Sender(
        id=kwargs.pop("id", None),
        domain_id=domain_id,
        local_part=local_part,
        email=f"{local_part}@{domain}",
        **kwargs,
    )


@pytest.fixture
def snapshot():
    """Two domains, given out of order, with unsorted senders."""
    zeta = Domain(id=2, name="zeta.example", senders=(
        make_sender(2, "zeta.example", "sales", id=3, ip="198.51.100.3"),
    ))
    acme = Domain(id=1, name="acme.io", senders=(
        make_sender(1, "acme.io", "news", id=2, ip="198.51.100.2",
                    warmup_enabled=True, warmup_plan=WarmupPlan.STANDARD, warmup_day=3),
        make_sender(1, "acme.io", "info", id=1, ip="198.51.100.1"),
    ))
    return Snapshot(
        settings=AppSettings(main_hostname="mta.acme.io", relay_ips="10.0.0.5"),
        domains=(zeta, acme),
    )


# -------------------------
# NAMING
# -------------------------

class TestNaming:
    """Test identifiers shared across artifacts."""

    def test_source_and_pool_names(self):
        assert source_name("example.com", "info") == "example.com:info"
        assert pool_name("example.com", "info") == "example.com-info"

    def test_tenant_key(self):
        assert tenant_key("example.com", "info") == "tenant:example.com-info"


# -------------------------
# TOML FILES
# -------------------------

class TestSources:
    """Test sources.toml."""

    def test_one_source_per_sender(self, snapshot):
        data = tomllib.loads(generate_sources(snapshot))

        assert set(data) == {"acme.io:info", "acme.io:news", "zeta.example:sales"}
        assert data["acme.io:info"] == {
            "source_address": "198.51.100.1",
            "ehlo_domain": "info.acme.io",
        }

    def test_source_address_omitted_without_ip(self, snapshot):
        domain = snapshot.domains[0]
        no_ip = replace(domain, senders=(replace(domain.senders[0], ip=""),))
        data = tomllib.loads(generate_sources(Snapshot(settings=None, domains=(no_ip,))))

        assert "source_address" not in data["zeta.example:sales"]

    def test_sorted_by_domain_then_local_part(self, snapshot):
        text = generate_sources(snapshot)

        positions = [
            text.index('["acme.io:info"]'),
            text.index('["acme.io:news"]'),
            text.index('["zeta.example:sales"]'),
        ]
        assert positions == sorted(positions)


class TestQueues:
    """Test queues.toml."""

    def test_tenant_per_sender(self, snapshot):
        data = tomllib.loads(generate_queues(snapshot))

        tenant = data["tenant:acme.io-info"]
        assert tenant["egress_pool"] == "acme.io-info"
        assert tenant["retry_interval"] == "1m"
        assert tenant["max_age"] == "3d"

    def test_rate_only_while_warming_up(self, snapshot):
        data = tomllib.loads(generate_queues(snapshot))

        assert "max_message_rate" not in data["tenant:acme.io-info"]
        assert data["tenant:acme.io-news"]["max_message_rate"] == "100/hr"


class TestListenerDomains:
    """Test listener_domains.toml."""

    def test_every_domain_relays(self, snapshot):
        data = tomllib.loads(generate_listener_domains(snapshot))

        assert list(data) == ["acme.io", "zeta.example"]
        assert data["acme.io"] == {"relay_to": True, "log_oob": True, "log_arf": True}

    def test_domain_without_senders_still_listed(self):
        snapshot = Snapshot(settings=None, domains=(Domain(id=1, name="empty.io"),))

        data = tomllib.loads(generate_listener_domains(snapshot))
        assert "empty.io" in data
        assert tomllib.loads(generate_sources(snapshot)) == {}


class TestDkimData:
    """Test dkim_data.toml."""

    def test_policy_per_sender(self, snapshot, tmp_path):
        data = tomllib.loads(generate_dkim_data(snapshot, tmp_path))

        acme = data["domain"]["acme.io"]
        assert acme["selector"] == "default"
        assert "From" in acme["headers"]
        assert [p["selector"] for p in acme["policy"]] == ["info", "news"]
        assert acme["policy"][0] == {
            "selector": "info",
            "filename": str(tmp_path / "acme.io" / "info.key"),
            "match_sender": "info@acme.io",
        }

    def test_no_x_headers_signed(self, snapshot, tmp_path):
        data = tomllib.loads(generate_dkim_data(snapshot, tmp_path))

        for cfg in data["domain"].values():
            assert not any(h.lower().startswith("x-") for h in cfg["headers"])


# -------------------------
# INIT.LUA
# -------------------------

class TestInitLua:
    """Test the bootstrap policy."""

    def test_loads_generated_files(self, snapshot, policy_paths):
        text = generate_init_lua(snapshot, policy_paths)

        for path in (
            policy_paths.sources,
            policy_paths.queues,
            policy_paths.listener_domains,
            policy_paths.dkim_data,
        ):
            assert f"kumo.toml_load('{path}')" in text
        assert f"pcall(dofile, '{policy_paths.custom_lua}')" in text

    def test_sender_routes(self, snapshot, policy_paths):
        text = generate_init_lua(snapshot, policy_paths)

        assert (
            "['info@acme.io'] = { tenant = 'acme.io-info', source = 'acme.io:info' },"
            in text
        )
        assert "max_message_rate = '100/hr'" in text

    def test_listeners_use_settings(self, snapshot, policy_paths):
        text = generate_init_lua(snapshot, policy_paths)

        assert text.count("kumo.start_esmtp_listener") == 3
        assert "hostname = 'mta.acme.io'" in text
        assert "relay_hosts = { '127.0.0.1', '10.0.0.5' }" in text
        assert "listen = '127.0.0.1:25'" in text
        assert "listen = '0.0.0.0:587'" in text

    def test_defaults_without_settings(self, policy_paths):
        text = generate_init_lua(Snapshot(settings=None, domains=()), policy_paths)

        assert "hostname = 'localhost'" in text
        assert "relay_hosts = { '127.0.0.1' }" in text

    def test_no_template_placeholders_left(self, snapshot, policy_paths):
        assert "$" not in generate_init_lua(snapshot, policy_paths)


# -------------------------
# ALL ARTIFACTS
# -------------------------

class TestGenerateAll:
    """Test rendering the full artifact set."""

    def test_write_order(self, snapshot, policy_paths):
        artifacts = generate_all(snapshot, policy_paths)

        assert [a.kind for a in artifacts] == list(WRITE_ORDER)
        assert artifacts[-1].path == policy_paths.init_lua

    def test_deterministic(self, snapshot, policy_paths):
        """Test input order does not change the output."""
        reordered = Snapshot(
            settings=snapshot.settings,
            domains=tuple(
                replace(d, senders=tuple(reversed(d.senders)))
                for d in reversed(snapshot.domains)
            ),
        )

        assert render_all(snapshot, policy_paths) == render_all(reordered, policy_paths)

    def test_each_artifact_ends_with_single_newline(self, snapshot, policy_paths):
        for content in render_all(snapshot, policy_paths).values():
            assert content.endswith("\n")
            assert not content.endswith("\n\n")

    def test_empty_local_part_fails(self, policy_paths):
        domain = Domain(id=1, name="acme.io", senders=(make_sender(1, "acme.io", ""),))

        with pytest.raises(GenerationError):
            generate_all(Snapshot(settings=None, domains=(domain,)), policy_paths)

    def test_empty_domain_name_fails(self, policy_paths):
        with pytest.raises(GenerationError):
            render_all(Snapshot(settings=None, domains=(Domain(id=1, name=""),)), policy_paths)

    def test_render_all_keys(self, snapshot, policy_paths):
        assert set(render_all(snapshot, policy_paths)) == set(ArtifactKind)
