from __future__ import annotations

"""
Text rendering helpers for module listings, plus the admin command line
used by scripts/modules_admin.py.
"""

import argparse
import time
from typing import Any, List, Optional

from mediamodules.core.config.keys import KEY_PLUGIN_HIDDEN, pref_key
from mediamodules.core.config.paths import ConfigFsPaths
from mediamodules.core.config.prefs import PrefsStore
from mediamodules.core.errors import MediaModulesError
from mediamodules.core.modules.models import DisabledReason, ModuleView
from mediamodules.core.modules.provider import ModuleProvider


WARNING_TEXT = {
    DisabledReason.NOT_INSTALLED: "will be installed shortly",
    DisabledReason.DISABLED_BY_POLICY: "blocked by the global media playback policy",
    DisabledReason.DISABLED_BY_USER: "disabled",
}


def _fmt_date(epoch_millis: int) -> str:
    if not epoch_millis:
        return "never"
    return time.strftime("%Y-%m-%d %H:%M:%SZ", time.gmtime(epoch_millis / 1000.0))


def _state_label(view: ModuleView) -> str:
    label = view.state.value.lower().replace("_", "-")
    if view.show_disabled_postfix:
        label += " (disabled)"
    return label


def modules_list_lines(*, provider: Any) -> List[str]:
    """
    Render the module listing.
    Columns: module_id | state | active | version | actions
    """
    lines = ["module_id | state | active | version | actions"]
    for view in provider.list_modules():
        actions = ",".join(a.value.lower() for a in view.actions) or "-"
        lines.append(f"{view.module_id} | {_state_label(view)} | {str(view.active).lower()} | {view.version or '-'} | {actions}")
    return lines


def module_detail_lines(view: ModuleView) -> List[str]:
    lines = [
        f"{view.name or view.module_id}",
        f"  id: {view.module_id}",
        f"  state: {_state_label(view)}",
        f"  version: {view.version or 'not installed'}",
        f"  last updated: {_fmt_date(view.update_date_epoch_millis)}",
        f"  automatic updates: {'on' if view.auto_update else 'off'}",
        f"  actions: {', '.join(a.value.lower() for a in view.actions) or 'none'}",
    ]
    if view.description:
        lines.insert(1, f"  {view.description}")
    if view.show_warning or view.disabled_by_policy:
        lines.append(f"  warning: {WARNING_TEXT.get(view.disabled_reason, view.disabled_reason.value)}")
    return lines


def run(argv: Optional[List[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Media module provider admin")
    ap.add_argument("--root", default=".", help="directory holding config/prefs.json")
    sub = ap.add_subparsers(dest="cmd", required=True)
    sub.add_parser("list")
    for name in ("show", "enable", "disable", "hide", "unhide"):
        p = sub.add_parser(name)
        p.add_argument("module_id")
    p = sub.add_parser("eme")
    p.add_argument("value", choices=["on", "off"])
    args = ap.parse_args(argv)

    fs = ConfigFsPaths(args.root).ensure()
    prefs = PrefsStore(path=fs.prefs, backups_dir=fs.backups_dir)
    provider = ModuleProvider(prefs=prefs, log_dir=fs.logs_dir)
    provider.startup()
    try:
        if args.cmd == "list":
            lines = modules_list_lines(provider=provider)
        elif args.cmd == "show":
            view = provider.get_module(args.module_id)
            lines = module_detail_lines(view) if view is not None else [f"{args.module_id}: hidden"]
        elif args.cmd in {"enable", "disable"}:
            rec = provider.set_enabled(args.module_id, args.cmd == "enable")
            lines = [f"{rec.id}: enabled={str(rec.enabled).lower()}"]
        elif args.cmd in {"hide", "unhide"}:
            provider.catalog.get(args.module_id)
            prefs.set_bool(pref_key(KEY_PLUGIN_HIDDEN, args.module_id), args.cmd == "hide")
            lines = [f"{args.module_id}: hidden={str(args.cmd == 'hide').lower()} (applies on next start)"]
        else:
            switch = provider.set_eme_enabled(args.value == "on")
            lines = [f"eme_enabled={str(switch.eme_enabled).lower()}"]
    except MediaModulesError as e:
        print(f"error: {e.user_message} ({e.code})")
        return 2
    finally:
        provider.shutdown()
    for line in lines:
        print(line)
    return 0
