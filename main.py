import argparse
import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

from dotenv import load_dotenv
load_dotenv()

from module_analyzer import AnalyzerConfig, analyze_modules

logger = logging.getLogger(__name__)

# =============================================================================
# CONFIGURATION
# =============================================================================

class Config:
    """Defaults for the command line, overridable through the environment"""
    LOG_LEVEL = os.environ.get("MODULE_ANALYZER_LOG_LEVEL", "INFO")
    DEFAULT_INPUT = os.environ.get("MODULE_ANALYZER_INPUT", "module-map.json")
    DEFAULT_OUTPUT = os.environ.get("MODULE_ANALYZER_OUTPUT", "dependency-analysis.json")
    CONFIG_FILES = ["modulerc.json", ".modulerc.json", ".modulerc", "module.config.json"]

# =============================================================================
# INPUT LOADING
# =============================================================================

def read_json(path: str) -> Any:
    with open(path, "r", encoding="utf-8") as handle:
        return json.load(handle)


def load_module_map(path: str, root: Optional[str] = None) -> Tuple[Dict[str, Any], Optional[str]]:
    """Read a module-fact map; relative module paths are anchored at the root"""
    data = read_json(path)
    if isinstance(data, dict) and isinstance(data.get("modules"), dict):
        modules = data["modules"]
        root = root or data.get("root")
    else:
        modules = data
    if not isinstance(modules, dict):
        raise ValueError(f"{path} does not contain a module map")

    base = os.path.abspath(root) if root else os.getcwd()
    facts = {}
    for module_path, module_info in modules.items():
        absolute = module_path if os.path.isabs(module_path) else os.path.normpath(os.path.join(base, module_path))
        facts[absolute] = module_info
    return facts, os.path.abspath(root) if root else None


def load_config(config_path: Optional[str], root: Optional[str]) -> AnalyzerConfig:
    """Load the first configuration file found; unreadable files fall back to defaults"""
    candidates = [config_path] if config_path else [
        os.path.join(root or os.getcwd(), name) for name in Config.CONFIG_FILES
    ]
    for candidate in candidates:
        if not os.path.exists(candidate):
            continue
        try:
            data = read_json(candidate)
        except (OSError, json.JSONDecodeError) as e:
            logger.error(f"Error parsing {candidate}: {e}")
            logger.info("Using default configuration")
            return AnalyzerConfig()
        logger.info(f"Loaded configuration from {candidate}")
        return AnalyzerConfig.from_dict(data)

    logger.info("No configuration file found, using defaults")
    return AnalyzerConfig()


def package_manifest_path(path: Optional[str], root: Optional[str]) -> str:
    return os.path.abspath(path or os.path.join(root or os.getcwd(), "package.json"))


def load_package_manifest(path: Optional[str], root: Optional[str]) -> Optional[Dict[str, Any]]:
    package_path = package_manifest_path(path, root)
    if not os.path.exists(package_path):
        return None
    try:
        manifest = read_json(package_path)
    except (OSError, json.JSONDecodeError) as e:
        logger.warning(f"Ignoring unreadable {package_path}: {e}")
        return None
    return manifest if isinstance(manifest, dict) else None

# =============================================================================
# COMMAND LINE
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="module-analyzer",
        description="Find circular imports, unused and missing exports and high coupling in a module-fact map.",
    )
    parser.add_argument("input", nargs="?", default=Config.DEFAULT_INPUT, help="module-fact map (JSON)")
    parser.add_argument("output", nargs="?", default=Config.DEFAULT_OUTPUT, help="analysis report (JSON)")
    parser.add_argument("--root", help="project root; relative module paths are resolved against it")
    parser.add_argument("--config", help="configuration file (JSON)")
    parser.add_argument("--package-json", help="package.json used to detect entry points")
    parser.add_argument("--verbose", "-v", action="store_true", help="enable debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, Config.LOG_LEVEL.upper(), logging.INFO),
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not os.path.exists(args.input):
        logger.error(f"Input file not found: {args.input}")
        return 1

    try:
        facts, root = load_module_map(args.input, args.root)
    except (OSError, ValueError) as e:
        logger.error(f"Could not read module map: {e}")
        return 1

    config = load_config(args.config, root)
    manifest = load_package_manifest(args.package_json, root)
    if root is None and manifest is not None:
        # Entry points in package.json are relative to the directory holding it
        root = os.path.dirname(package_manifest_path(args.package_json, root))

    logger.info(f"Analyzing {len(facts)} modules from {args.input}")
    result = analyze_modules(facts, config=config, project_root=root, package_manifest=manifest)

    report = {"analyzed": datetime.now(timezone.utc).isoformat()}
    report.update(result.to_dict())
    with open(args.output, "w", encoding="utf-8") as handle:
        json.dump(report, handle, indent=2)

    summary = result.stats
    logger.info(f"Wrote dependency analysis to: {args.output}")
    logger.info(f"{summary.circular_dependencies} circular dependencies, "
                f"{summary.unused_exports} unused exports, {summary.missing_exports} missing exports, "
                f"{summary.unresolved_internals} unresolved imports, "
                f"{summary.high_coupling_modules} highly coupled modules")
    return 0


if __name__ == "__main__":
    sys.exit(main())
