import argparse
import asyncio
import json
import sys

from . import get_version


def _print_update(partial):
    if "artifacts" in partial:
        latest = partial["artifacts"][-1] if partial["artifacts"] else None
        if latest:
            print(f"[artifact] {latest['type']} {latest['role']}: {latest['title']}")
        return
    if "roles" in partial:
        print(f"[roles] {', '.join(partial['roles'])}")
    if "consistency" in partial and partial["consistency"]:
        for issue in partial["consistency"]["issues"]:
            print(f"[consistency] {issue}")
    if "status" in partial or "current_step" in partial:
        status = partial.get("status", "")
        step = partial.get("current_step", "")
        print(f"[{status or 'step'}] {step}".rstrip())


def _run(args) -> int:
    from core.orchestrator import run_pipeline
    from design_solver.llm_client import get_model
    from utils.config import SolverSettings

    settings = SolverSettings.from_config()
    model = get_model(settings, dry_run=True if args.dry_run else None)
    try:
        state = asyncio.run(
            run_pipeline(
                args.idea,
                args.mode,
                args.depth,
                _print_update,
                model=model,
                settings=settings,
            )
        )
    except ValueError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    payload = state.model_dump(mode="json")
    if args.out:
        with open(args.out, "w", encoding="utf-8") as f:
            json.dump(payload, f, indent=2, ensure_ascii=False)
        print(f"wrote {args.out}")
    if state.status.value == "error":
        print(f"error: {state.error}", file=sys.stderr)
        return 1
    print(f"ready: {len(state.artifacts)} artifacts")
    return 0


def _roles(args) -> int:
    from core.role_resolver import resolve_roles

    for role in resolve_roles(args.mode, args.depth):
        print(role.value)
    return 0


def main(argv=None):
    parser = argparse.ArgumentParser(prog="design-solver")
    parser.add_argument("--version", action="store_true", help="Print package version and exit")
    sub = parser.add_subparsers(dest="cmd")

    sub.add_parser("version", help="Print package version")

    run_p = sub.add_parser("run", help="Run the design pipeline for one idea")
    run_p.add_argument("idea", help="Product idea text")
    run_p.add_argument("--mode", choices=["idea", "mvp", "scale"], default="idea")
    run_p.add_argument("--depth", choices=["quick", "standard", "deep"], default="standard")
    run_p.add_argument("--out", help="Write the final run state as JSON to this file")
    run_p.add_argument("--dry-run", action="store_true", help="Use the offline model client")

    roles_p = sub.add_parser("roles", help="Print the roles resolved for a mode and depth")
    roles_p.add_argument("--mode", choices=["idea", "mvp", "scale"], default="idea")
    roles_p.add_argument("--depth", choices=["quick", "standard", "deep"], default="standard")

    args = parser.parse_args(argv)

    if args.version or args.cmd == "version":
        print(get_version())
        return 0
    if args.cmd == "run":
        return _run(args)
    if args.cmd == "roles":
        return _roles(args)

    parser.print_help()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
