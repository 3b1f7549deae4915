"""
sync-rsync configuration resolution.

Turns raw settings plus the workspace context into an immutable
:class:`~syncrsync.core.models.Config`:

1. The default site is the built-in defaults overridden by the top-level
   settings.
2. Each entry of ``sites`` overrides a copy of the default site, field by
   field. With no entries the default site is the only site.
3. Template tokens are substituted against the workspace.
4. Remote paths get a trailing slash; local paths are translated through
   the path bridge once, then get a trailing slash.
5. Sites are indexed by name, falling back to the remote path.

A path bridge failure aborts the whole build.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import replace
from types import MappingProxyType

from syncrsync.core.errors import ConfigError, PathTranslationError
from syncrsync.core.logging import get_logger
from syncrsync.core.models import Config, Site, WorkspaceContext
from syncrsync.core.settings import RawSettings, RawSite
from syncrsync.platform.paths import PathTranslator

logger = get_logger(__name__)

WORKSPACE_ROOT = "${workspaceRoot}"
WORKSPACE_FOLDER = "${workspaceFolder}"
WORKSPACE_FOLDER_BASENAME = "${workspaceFolderBasename}"


def ensure_trailing_slash(path: str | None) -> str | None:
    """Normalize ``path`` to end with exactly one ``/``."""
    if path is None:
        return None
    return path.rstrip("/") + "/"


def merge_site(base: Site, override: RawSite) -> Site:
    """Return ``base`` with every field present in ``override`` replaced."""
    return replace(base, **override.overrides())


class ConfigResolver:
    """Builds resolved configurations from raw settings."""

    def build(self, raw: RawSettings, workspace: WorkspaceContext) -> Config:
        translator = PathTranslator(cygpath=raw.cygpath, use_wsl=raw.use_wsl)

        default_site = merge_site(Site(), raw)
        if raw.sites:
            sites = [merge_site(default_site, entry) for entry in raw.sites]
        else:
            sites = [default_site]

        resolved = tuple(self._resolve_site(site, workspace, translator) for site in sites)

        site_map: dict[str, Site] = {}
        for site in resolved:
            site_map[site.key] = site

        logger.info(
            "Configuration built",
            sites=len(resolved),
            workspace=workspace.root,
            bridged=translator.is_bridged,
        )

        return Config(
            sites=resolved,
            site_map=MappingProxyType(site_map),
            on_save=raw.on_save,
            on_save_individual=raw.on_save_individual,
            on_load_individual=raw.on_load_individual,
            show_progress=raw.show_progress,
            notification=raw.notification,
            auto_show_output=raw.auto_show_output,
            auto_show_output_on_error=raw.auto_show_output_on_error,
            auto_hide_output=raw.auto_hide_output,
            cygpath=raw.cygpath,
            use_wsl=raw.use_wsl,
            watch_globs=tuple(raw.watch_globs),
        )

    def _resolve_site(
        self,
        site: Site,
        workspace: WorkspaceContext,
        translator: PathTranslator,
    ) -> Site:
        local_root = workspace.local_root
        local_path = site.local_path if site.local_path is not None else local_root
        remote_path = site.remote_path
        options = site.options

        if local_root is not None:
            local_path = local_path.replace(WORKSPACE_ROOT, local_root)

            if any(WORKSPACE_ROOT in option for group in options for option in group):
                translated_root = self._translate(translator, local_root, site)
                options = tuple(
                    tuple(option.replace(WORKSPACE_ROOT, translated_root) for option in group)
                    for group in options
                )

            if remote_path is not None:
                remote_path = (
                    remote_path.replace(WORKSPACE_ROOT, local_root)
                    .replace(WORKSPACE_FOLDER_BASENAME, workspace.folder_basename or "")
                    .replace(WORKSPACE_FOLDER, local_root)
                )

        if remote_path is None:
            raise ConfigError(f"Site {site.describe()} has no remote path")
        if local_path is None:
            raise ConfigError(
                f"Site {site.describe()} has no local path and no workspace is open"
            )

        translated = self._translate(translator, local_path, site)

        return replace(
            site,
            local_path=local_path,
            remote_path=ensure_trailing_slash(remote_path),
            translated_local_path=ensure_trailing_slash(translated),
            options=options,
        )

    def _translate(self, translator: PathTranslator, path: str, site: Site) -> str:
        try:
            translated = translator.translate(path)
        except PathTranslationError as e:
            logger.error("Path translation failed", site=site.describe(), path=path)
            raise ConfigError(f"Site {site.describe()}: {e}") from e
        return translated if translated is not None else path


def build_config(raw: RawSettings, workspace: WorkspaceContext) -> Config:
    """Build a configuration with the default resolver."""
    return ConfigResolver().build(raw, workspace)


class SiteRegistry:
    """Keyed view over a configuration's sites."""

    def __init__(self, config: Config) -> None:
        self._site_map = config.site_map

    def keys(self) -> list[str]:
        return list(self._site_map.keys())

    def get(self, key: str | None) -> Site | None:
        if key is None:
            return None
        return self._site_map.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self._site_map

    def __iter__(self) -> Iterator[str]:
        return iter(self._site_map)

    def __len__(self) -> int:
        return len(self._site_map)
