# relay_control/generator/policy_lua.py
"""Bootstrap policy (init.lua) template and renderer."""

from string import Template
from typing import List

from relay_control.core.models import PolicyPaths, Snapshot
from relay_control.core.warmup import sender_rate
from relay_control.generator.naming import pool_name, source_name
from relay_control.generator.toml_files import sender_groups

DEFAULT_HOSTNAME = "localhost"
DEFAULT_LISTEN_ADDR = "127.0.0.1:25"


def lua_str(value: str) -> str:
    """Render a single-quoted Lua string literal."""
    escaped = (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )
    return f"'{escaped}'"


INIT_LUA_TEMPLATE = Template("""\
-- Generated by relay-control from the database. Changes are overwritten on apply.
-- Put manual overrides in $custom_lua_path.
local kumo = require 'kumo'

kumo.on('init', function()
  kumo.define_spool {
    name = 'data',
    path = '/var/spool/kumomta/data',
    kind = 'LocalDisk',
  }

  kumo.define_spool {
    name = 'meta',
    path = '/var/spool/kumomta/meta',
    kind = 'LocalDisk',
  }

  kumo.configure_local_logs {
    log_dir = '/var/log/kumomta',
    max_segment_duration = '10 seconds',
  }

  kumo.configure_bounce_classifier {
    files = {
      '/opt/kumomta/share/bounce_classifier/iana.toml',
    },
  }

  kumo.start_http_listener {
    listen = '127.0.0.1:8000',
    use_tls = false,
    trusted_hosts = { '127.0.0.1' },
  }
$listeners
end)

-- =====================================================
-- POLICY DATA
-- =====================================================
local sources_data = kumo.toml_load($sources_path)
local queues_data = kumo.toml_load($queues_path)
local listener_domains = kumo.toml_load($listener_domains_path)
local dkim_data = kumo.toml_load($dkim_data_path)

-- =====================================================
-- SENDER ROUTING (MAIL FROM -> tenant / egress source)
-- =====================================================
local sender_routes = {
$sender_routes}

local tenant_routes = {}
for _, route in pairs(sender_routes) do
  tenant_routes[route.tenant] = route
end

local function get_tenant_from_sender(sender_email)
  if sender_email then
    local route = sender_routes[sender_email:lower()]
    if route then
      return route.tenant
    end
  end
  return 'default'
end

-- =====================================================
-- LISTENER DOMAIN CONFIG
-- =====================================================
kumo.on('get_listener_domain', function(domain, listener, conn_meta)
  local config = listener_domains[domain]
  if config then
    return kumo.make_listener_domain {
      relay_to = config.relay_to or false,
      log_oob = config.log_oob or false,
      log_arf = config.log_arf or false,
    }
  end
  return kumo.make_listener_domain { relay_to = false }
end)

-- =====================================================
-- EGRESS POOLS / SOURCES
-- =====================================================
kumo.on('get_egress_pool', function(pool_name)
  local route = tenant_routes[pool_name]
  if route and sources_data[route.source] then
    return kumo.make_egress_pool {
      name = pool_name,
      entries = { { name = route.source } },
    }
  end
  return kumo.make_egress_pool { name = pool_name, entries = {} }
end)

kumo.on('get_egress_source', function(source_name)
  local cfg = sources_data[source_name]
  if cfg then
    return kumo.make_egress_source {
      name = source_name,
      source_address = cfg.source_address,
      ehlo_domain = cfg.ehlo_domain,
    }
  end
  return kumo.make_egress_source { name = source_name }
end)

kumo.on('get_egress_path_config', function(domain, egress_source, site_name)
  return kumo.make_egress_path {
    enable_tls = 'OpportunisticInsecure',
    enable_mta_sts = false,
  }
end)

-- =====================================================
-- QUEUE CONFIG
-- =====================================================
kumo.on('get_queue_config', function(domain, tenant, campaign, routing_domain)
  tenant = tenant or 'default'
  local cfg = queues_data['tenant:' .. tenant] or {}
  local route = tenant_routes[tenant] or {}
  return kumo.make_queue_config {
    egress_pool = cfg.egress_pool or tenant,
    retry_interval = cfg.retry_interval or '1m',
    max_age = cfg.max_age or '3d',
    max_message_rate = cfg.max_message_rate or route.max_message_rate,
  }
end)

-- =====================================================
-- DKIM SIGNING (IDENTITY-BASED)
-- =====================================================
local function dkim_sign_message(msg)
  local sender = msg:from_header()
  if not sender then
    kumo.log_error('DKIM: missing From header')
    return
  end

  local sender_email = sender.email:lower()
  local sender_domain = sender.domain:lower()

  local domain_cfg = dkim_data.domain and dkim_data.domain[sender_domain]
  if not domain_cfg or not domain_cfg.policy then
    kumo.log_error('DKIM: no DKIM config for domain ' .. sender_domain)
    return
  end

  for _, policy in ipairs(domain_cfg.policy) do
    if sender_email == policy.match_sender:lower() then
      msg:dkim_sign(kumo.dkim.rsa_sha256_signer {
        domain = sender_domain,
        selector = policy.selector,
        headers = domain_cfg.headers,
        key = policy.filename,
      })
      return
    end
  end

  kumo.log_error('DKIM: no identity match for ' .. sender_email)
end

local function route_message(msg, tenant)
  if not tenant then
    local sender = msg:from_header()
    tenant = get_tenant_from_sender(sender and sender.email or nil)
  end
  msg:set_meta('tenant', tenant)

  local campaign = msg:get_first_named_header_value('X-Campaign')
  if campaign then
    msg:set_meta('campaign', campaign)
  end

  dkim_sign_message(msg)
end

-- =====================================================
-- SMTP PATH
-- =====================================================
kumo.on('smtp_server_message_received', function(msg)
  route_message(msg, nil)
end)

-- =====================================================
-- HTTP / API PATH
-- =====================================================
kumo.on('http_message_generated', function(msg)
  route_message(msg, msg:get_first_named_header_value('X-Tenant'))
end)

pcall(dofile, $custom_lua_path)
""")


LISTENER_TEMPLATE = Template("""
  kumo.start_esmtp_listener {
    listen = $listen,
    hostname = $hostname,
    banner = $banner,
    relay_hosts = { $relay_hosts },
  }
""")


def _render_listeners(snapshot: Snapshot) -> str:
    settings = snapshot.settings
    hostname = DEFAULT_HOSTNAME
    listen_addr = DEFAULT_LISTEN_ADDR
    relay_hosts = ["127.0.0.1"]

    if settings is not None:
        hostname = settings.main_hostname or DEFAULT_HOSTNAME
        listen_addr = settings.smtp_listen_addr or DEFAULT_LISTEN_ADDR
        relay_hosts = settings.relay_hosts()

    relay_list = ", ".join(lua_str(ip) for ip in relay_hosts)
    blocks = [
        LISTENER_TEMPLATE.substitute(
            listen=lua_str(listen),
            hostname=lua_str(hostname),
            banner=lua_str(f"220 {hostname}"),
            relay_hosts=relay_list,
        )
        for listen in (listen_addr, "0.0.0.0:587", "0.0.0.0:465")
    ]
    return "".join(blocks).rstrip("\n")


def _render_sender_routes(snapshot: Snapshot) -> str:
    lines: List[str] = []

    for domain, senders in sender_groups(snapshot):
        for sender in senders:
            fields = [
                f"tenant = {lua_str(pool_name(domain.name, sender.local_part))}",
                f"source = {lua_str(source_name(domain.name, sender.local_part))}",
            ]
            rate = sender_rate(sender)
            if rate:
                fields.append(f"max_message_rate = {lua_str(rate)}")
            lines.append(f"  [{lua_str(sender.email.lower())}] = {{ {', '.join(fields)} }},\n")

    return "".join(lines)


def generate_init_lua(snapshot: Snapshot, paths: PolicyPaths) -> str:
    """Render the bootstrap policy for the given snapshot and file layout."""
    return INIT_LUA_TEMPLATE.substitute(
        listeners=_render_listeners(snapshot),
        sources_path=lua_str(str(paths.sources)),
        queues_path=lua_str(str(paths.queues)),
        listener_domains_path=lua_str(str(paths.listener_domains)),
        dkim_data_path=lua_str(str(paths.dkim_data)),
        sender_routes=_render_sender_routes(snapshot),
        custom_lua_path=lua_str(str(paths.custom_lua)),
    )
