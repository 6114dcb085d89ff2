"""
Serve the filter-preset admin API with in-memory data.

Demonstrates wiring the store, register, cache, and auth provider together.

Usage:
    pip install -e ".[metrics,serve]"
    python examples/admin_service.py
    curl -X POST -H 'x-api-key: owner-key' \
        http://127.0.0.1:8000/admin/filter-presets/p2/set-default
    curl http://127.0.0.1:9100/metrics
"""

import logging

from prometheus_client import start_http_server

from resourcekit import (
    CallerCapability,
    CancelableFetcher,
    GroupDefaultRegister,
    InMemoryGroupMemberStore,
    OwnerOrRoleAuthorizer,
    PrometheusCounterSink,
    ResourceCache,
    ResourceSettings,
    create_cache_backend_from_env,
)
from resourcekit.api import (
    APIKeyPresetAuthProvider,
    FilterPresetServiceHost,
    PresetListSource,
    creator_resolver,
    new_preset,
)

USERS = {"u1": {"id": "u1", "name": "Uma", "image": None}}


def main() -> None:
    logging.basicConfig(level=logging.INFO)
    settings = ResourceSettings.from_env()
    metrics = PrometheusCounterSink()

    store = InMemoryGroupMemberStore(
        [
            new_preset(
                "p1",
                tenant_id="t1",
                entity_type="clients",
                name="Enterprise",
                created_by="u1",
                filter_config={"tier": "ENTERPRISE"},
                is_default=True,
            ),
            new_preset(
                "p2",
                tenant_id="t1",
                entity_type="clients",
                name="Small business",
                created_by="u1",
                filter_config={"tier": "SMB"},
            ),
        ],
        relation_resolver=creator_resolver(USERS),
    )
    cache = ResourceCache(
        CancelableFetcher(
            PresetListSource(store),
            retry_policy=settings.retry_policy(),
            timeout_policy=settings.timeout_policy(),
        ),
        backend=create_cache_backend_from_env(settings=settings),
        cache_policy=settings.cache_policy(),
        metrics=metrics,
    )
    register = GroupDefaultRegister(
        store,
        OwnerOrRoleAuthorizer(elevated_marker=settings.elevated_role_marker),
        write_timeout_s=settings.write_timeout_s,
        metrics=metrics,
    )
    host = FilterPresetServiceHost(
        store=store,
        register=register,
        cache=cache,
        auth_provider=APIKeyPresetAuthProvider(
            key_to_caller={
                "owner-key": CallerCapability(subject="u1", tenant_id="t1"),
                "admin-key": CallerCapability(
                    subject="u2", roles=("ADMIN",), tenant_id="t1"
                ),
            }
        ),
    )
    start_http_server(9100)
    host.run()


if __name__ == "__main__":
    main()
