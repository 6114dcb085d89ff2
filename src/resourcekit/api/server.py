"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

FastAPI host for the admin filter-preset endpoints.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from starlette.requests import Request

from ..cache.layer import ResourceCache
from ..defaults.register import GroupDefaultRegister
from ..defaults.store import GroupMemberStore
from ..errors import (
    ConflictDuringUpdateError,
    ForbiddenError,
    NotFoundError,
    ResourceCancelledError,
    ResourceTimeoutError,
    StoreUnavailableError,
    TransientExhaustedError,
)
from ..fetching.fetcher import CancelableFetcher
from ..filtering import FilterSpec, filter_records
from ..types import FetchKey
from .auth import PresetAuthError, PresetAuthProvider
from .presets import PRESETS_RESOURCE, FilterPresetView, PresetListSource

logger = logging.getLogger("resourcekit.api")

_SEARCH_FIELDS = ("name", "entityType")


class PresetServiceHostError(RuntimeError):
    """Raised for invalid service host setup."""


def _error(status_code: int, message: str):
    from fastapi.responses import JSONResponse

    return JSONResponse(status_code=status_code, content={"error": message})


class FilterPresetServiceHost:
    """Expose preset list and set-default endpoints with auth enforcement."""

    def __init__(
        self,
        *,
        store: GroupMemberStore,
        register: GroupDefaultRegister,
        auth_provider: PresetAuthProvider,
        cache: ResourceCache | None = None,
        service_name: str = "resourcekit-admin",
    ) -> None:
        self.store = store
        self.register = register
        self.auth_provider = auth_provider
        self.service_name = service_name
        self._owns_cache = cache is None
        if cache is None:
            cache = ResourceCache(CancelableFetcher(PresetListSource(store)))
        self.cache = cache

    def create_app(self):
        """Create and return FastAPI app exposing the preset endpoints."""
        try:
            from fastapi import FastAPI
        except Exception as exc:  # pragma: no cover - optional runtime path
            raise PresetServiceHostError(
                "FastAPI is required to host preset endpoints"
            ) from exc

        @asynccontextmanager
        async def lifespan(_app) -> AsyncIterator[None]:
            yield
            if self._owns_cache:
                await self.cache.close()

        app = FastAPI(title=self.service_name, lifespan=lifespan)

        async def _caller(request: Request):
            headers = {str(k): str(v) for k, v in request.headers.items()}
            try:
                return await self.auth_provider.authenticate(headers)
            except PresetAuthError as exc:
                logger.info("Rejected unauthenticated request: %s", exc)
                return None

        @app.get("/admin/filter-presets")
        async def list_presets(
            request: Request,
            entityType: str,
            search: str | None = None,
        ) -> Any:
            caller = await _caller(request)
            if caller is None:
                return _error(401, "Unauthorized")
            if not caller.tenant_id:
                return _error(400, "No tenant found")

            key = FetchKey.of(
                PRESETS_RESOURCE, tenantId=caller.tenant_id, entityType=entityType
            )
            try:
                rows = await self.cache.get(key)
            except (ResourceTimeoutError, TransientExhaustedError, StoreUnavailableError) as exc:
                logger.warning("Preset list %s unavailable: %s", key.token, exc)
                return _error(503, exc.safe_message)
            except ResourceCancelledError as exc:
                return _error(503, exc.safe_message)
            except Exception:
                logger.exception("Failed to list presets for %s", key.token)
                return _error(500, "Failed to list presets")

            visible = filter_records(
                rows or [],
                FilterSpec(search_text=search, search_fields=_SEARCH_FIELDS),
            )
            return {"presets": visible}

        @app.post("/admin/filter-presets/{preset_id}/set-default")
        async def set_default(preset_id: str, request: Request) -> Any:
            caller = await _caller(request)
            if caller is None:
                return _error(401, "Unauthorized")
            if not caller.tenant_id:
                return _error(400, "No tenant found")

            try:
                preset = await self.store.get(preset_id)
                # presets of other tenants are reported as missing
                if preset is None or preset.attributes.get("tenant_id") != caller.tenant_id:
                    return _error(404, "Preset not found")
                updated = await self.register.set_default(
                    preset_id, preset.group_key, caller
                )
                view = FilterPresetView.from_member(updated)
            except NotFoundError:
                return _error(404, "Preset not found")
            except ForbiddenError:
                return _error(403, "Forbidden")
            except ConflictDuringUpdateError as exc:
                logger.warning("Set-default conflict for preset %s: %s", preset_id, exc)
                return _error(409, exc.safe_message)
            except (ResourceTimeoutError, StoreUnavailableError) as exc:
                logger.warning("Set-default for preset %s failed: %s", preset_id, exc)
                return _error(503, exc.safe_message)
            except Exception:
                logger.exception("Failed to set default preset %s", preset_id)
                return _error(500, "Failed to set as default")

            # the default already moved; a stale list only lives until its TTL
            try:
                await self.cache.invalidate(PRESETS_RESOURCE)
            except Exception:
                logger.exception(
                    "Failed to invalidate preset lists after setting %s", preset_id
                )
            return {"success": True, **view.model_dump(mode="json", by_alias=True)}

        return app

    def run(self, *, host: str = "127.0.0.1", port: int = 8000, **kwargs: Any) -> None:
        """
        Serve the app with uvicorn.

        Args:
            **kwargs: Additional arguments passed to ``uvicorn.run()``.
        """
        try:
            import uvicorn
        except ImportError as exc:
            raise PresetServiceHostError(
                "uvicorn is required to run the preset service. "
                "Install it with: pip install uvicorn"
            ) from exc

        uvicorn.run(self.create_app(), host=host, port=port, **kwargs)
