# SPDX-License-Identifier: LGPL-3.0-or-later
# -*- coding: utf-8 -*-
# terrasphere/__main__.py
"""
terrasphere command line.

  terrasphere serve                      run the HTTP API (uvicorn)
  terrasphere probe --server ... --user ...
  terrasphere inventory clusters --datacenter DC --server ... --user ...
  terrasphere tfvars vars.json [-o out.tfvars]

The vSphere password is read from --password or TERRASPHERE_VSPHERE_PASSWORD.
"""
from __future__ import annotations

import argparse
import json
import os
import sys
import traceback
from pathlib import Path
from typing import Any, Dict, List, Optional

from . import __version__
from .config.app_config import AppConfig, build_config
from .core.exceptions import Fatal, TerraSphereError, VMwareError, format_exception_for_cli, wrap_fatal
from .core.logger import Log
from .core.utils import U
from .terraform.tfvars import render_tfvars
from .vmware.transports.govc_common import GovcExecutor
from .vmware.vsphere.datastore_clusters import derive_datastore_clusters
from .vmware.vsphere.errors import VsphereExitCode, exit_code_for
from .vmware.vsphere.formats import ConnectionDetails
from .vmware.vsphere.inventory import GovcInventory

PASSWORD_ENV = "TERRASPHERE_VSPHERE_PASSWORD"

INVENTORY_KINDS = ("clusters", "networks", "templates", "datastore-clusters")


def _add_connection_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--server", required=True, help="vCenter host, IP or URL")
    p.add_argument("--user", required=True, help=r"username, e.g. DOMAIN\\user or user@vsphere.local")
    p.add_argument("--password", default=None, help=f"password (default: ${PASSWORD_ENV})")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="terrasphere", description="vSphere discovery and Terraform provisioning backend")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("--config", default=None, help="YAML or JSON config file")
    p.add_argument("-v", "--verbose", action="count", default=0, help="-vv debug, -vvv trace")
    p.add_argument("-q", "--quiet", action="count", default=0)
    p.add_argument("--log-file", default=None)
    p.add_argument("--json-logs", action="store_true", help="emit NDJSON logs on stderr")
    p.add_argument("--govc-path", default=None, help="path to the govc binary")
    p.add_argument("--govc-mode", choices=("native", "wsl"), default=None)

    sub = p.add_subparsers(dest="command")
    sub.required = True

    s = sub.add_parser("serve", help="run the HTTP API")
    s.add_argument("--host", default=None)
    s.add_argument("--port", type=int, default=None)

    pr = sub.add_parser("probe", help="try the connection formats and list datacenters")
    _add_connection_args(pr)

    inv = sub.add_parser("inventory", help="list inventory objects via govc")
    inv.add_argument("kind", choices=INVENTORY_KINDS)
    inv.add_argument("--datacenter", "--dc", dest="datacenter", default=None)
    inv.add_argument("--derive", action="store_true", help="group datastores by naming pattern when no clusters are reported")
    _add_connection_args(inv)

    tf = sub.add_parser("tfvars", help="render a .tfvars file from a JSON variables map")
    tf.add_argument("vars_file")
    tf.add_argument("-o", "--output", default=None)
    return p


def _connection(args: argparse.Namespace) -> ConnectionDetails:
    password = args.password or os.environ.get(PASSWORD_ENV, "")
    if not password:
        raise Fatal(2, f"no password given (use --password or ${PASSWORD_ENV})")
    return ConnectionDetails(server=args.server, user=args.user, password=password)


def _inventory(cfg: AppConfig, args: argparse.Namespace, logger) -> GovcInventory:
    executor = GovcExecutor(cfg.govc_settings(), logger=Log.get("govc"))
    return GovcInventory(_connection(args), executor, insecure=cfg.insecure, logger=logger)


def cmd_serve(cfg: AppConfig, args: argparse.Namespace, logger) -> int:
    import uvicorn

    from .web.app import create_app

    host = args.host or cfg.host
    port = args.port or cfg.port
    Log.step(logger, f"serving on http://{host}:{port}")
    uvicorn.run(create_app(cfg), host=host, port=port, log_level="info")
    return 0


def cmd_probe(cfg: AppConfig, args: argparse.Namespace, logger) -> int:
    res = _inventory(cfg, args, logger).probe()
    print(U.json_dump({
        "datacenters": [d.to_dict() for d in res.items],
        "format": res.candidate.describe(),
        "url": res.env.get("GOVC_URL"),
        "username": res.env.get("GOVC_USERNAME"),
    }))
    return 0


def cmd_inventory(cfg: AppConfig, args: argparse.Namespace, logger) -> int:
    inv = _inventory(cfg, args, logger)
    kind = args.kind
    if kind in ("clusters", "datastore-clusters") and not args.datacenter:
        raise Fatal(2, f"--datacenter is required for {kind}")

    out: List[Dict[str, Any]]
    if kind == "clusters":
        out = [c.to_dict() for c in inv.clusters(args.datacenter)]
    elif kind == "networks":
        out = [n.to_dict() for n in inv.networks(args.datacenter)]
    elif kind == "templates":
        out = [t.to_dict() for t in inv.templates(args.datacenter)]
    else:
        items = inv.datastore_clusters(args.datacenter)
        out = [i.to_dict() for i in items]
        if not out and args.derive:
            logger.info("no datastore clusters reported; deriving from datastore names")
            names = [d.name for d in inv.datastores(args.datacenter)]
            out = derive_datastore_clusters(names)
    print(U.json_dump(out))
    return 0


def cmd_tfvars(cfg: AppConfig, args: argparse.Namespace, logger) -> int:
    src = Path(args.vars_file)
    try:
        variables = json.loads(src.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise Fatal(2, f"no such file: {src}")
    except ValueError as e:
        raise wrap_fatal(f"{src} is not valid JSON", e, code=2)
    if not isinstance(variables, dict):
        raise Fatal(2, f"{src} must contain a JSON object")

    text = render_tfvars(variables)
    if args.output:
        Path(args.output).write_text(text, encoding="utf-8")
        Log.ok(logger, f"wrote {args.output}")
    else:
        sys.stdout.write(text)
    return 0


COMMANDS = {
    "serve": cmd_serve,
    "probe": cmd_probe,
    "inventory": cmd_inventory,
    "tfvars": cmd_tfvars,
}


def main(argv: Optional[List[str]] = None) -> None:
    args = build_parser().parse_args(argv)
    logger = Log.setup(args.verbose, args.log_file, quiet=args.quiet, json_logs=args.json_logs)

    try:
        cfg = build_config(
            args.config,
            overrides={"govc_path": args.govc_path, "govc_mode": args.govc_mode},
        )
        rc = COMMANDS[args.command](cfg, args, logger)
    except Fatal as e:
        Log.fail(logger, format_exception_for_cli(e, verbose=args.verbose))
        rc = e.code
    except VMwareError as e:
        Log.fail(logger, format_exception_for_cli(e, verbose=args.verbose))
        rc = exit_code_for(e)
    except TerraSphereError as e:
        Log.fail(logger, format_exception_for_cli(e, verbose=args.verbose))
        rc = e.code
    except KeyboardInterrupt:
        Log.warn(logger, "Interrupted by user (Ctrl+C).")
        rc = int(VsphereExitCode.INTERRUPTED)
    except Exception as e:
        logger.error("💥 UNHANDLED %s: %s", type(e).__name__, e)
        logger.debug("%s", traceback.format_exc())
        rc = 1

    raise SystemExit(rc)


if __name__ == "__main__":
    main()
