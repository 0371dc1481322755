"""Flow document loader.

Reads flow definitions from YAML. Loading degrades instead of raising: a
missing or malformed document is an empty document, and a malformed flow entry
is skipped while the rest of the document stays usable.
"""

import logging
import shutil
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml
from pydantic import ValidationError

from flowkit.errors import FlowkitError
from flowkit.models import Flow, FlowDocument

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def parse_flow_document(data: Any, source: str = "<memory>") -> FlowDocument:
    """Build a FlowDocument from already-parsed YAML data."""
    if data is None:
        return FlowDocument()
    if not isinstance(data, dict):
        logger.warning(f"Flow document {source} is not a mapping, ignoring it")
        return FlowDocument()

    raw_flows = data.get("flows") or []
    if not isinstance(raw_flows, list):
        logger.warning(f"'flows' in {source} is not a list, ignoring it")
        raw_flows = []

    flows: List[Flow] = []
    for index, entry in enumerate(raw_flows):
        try:
            flows.append(Flow.model_validate(entry))
        except ValidationError as e:
            name = entry.get("name") if isinstance(entry, dict) else None
            logger.warning(
                f"Skipping invalid flow #{index} ({name or 'unnamed'}) in {source}: "
                f"{e.error_count()} error(s): {e}"
            )

    meta = data.get("meta")
    return FlowDocument(meta=meta if isinstance(meta, dict) else None, flows=flows)


def load_flow_document(path: PathLike) -> FlowDocument:
    """Load flows from a YAML file

    Args:
        path: Location of the flow document

    Returns:
        The parsed document, empty if the file is missing or unreadable
    """
    flow_path = Path(path)
    if not flow_path.is_file():
        logger.warning(f"Flow document not found: {flow_path}")
        return FlowDocument()

    try:
        with open(flow_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError) as e:
        logger.warning(f"Failed to parse {flow_path}: {e}")
        return FlowDocument()

    document = parse_flow_document(data, source=str(flow_path))
    logger.info(f"Loaded {len(document.flows)} flow(s) from {flow_path}")
    return document


def _collect_example_files(examples_dir: Path) -> List[Path]:
    if not examples_dir.is_dir():
        return []
    return sorted(
        p for p in examples_dir.iterdir() if p.is_file() and p.suffix in (".yaml", ".yml")
    )


def merge_flow_examples(examples_dir: PathLike, target_path: PathLike) -> int:
    """Merge every example flow file into a single flow document

    The existing target's meta block is preserved and the previous target is
    copied to '<target>.bak' before it is overwritten.

    Args:
        examples_dir: Directory holding *.yaml / *.yml flow files
        target_path: Flow document to write

    Returns:
        Number of flows written

    Raises:
        FlowkitError: If the directory has no example files or one fails to parse
    """
    examples = Path(examples_dir)
    target = Path(target_path)

    files = _collect_example_files(examples)
    if not files:
        raise FlowkitError(f"No flow example files found in {examples}")

    merged: Dict[str, Any] = {}
    if target.is_file():
        try:
            with open(target, "r", encoding="utf-8") as f:
                existing = yaml.safe_load(f)
            if isinstance(existing, dict) and existing.get("meta"):
                merged["meta"] = existing["meta"]
        except yaml.YAMLError as e:
            logger.warning(f"Could not parse existing {target} meta: {e}")

    flows: List[Any] = []
    for file in files:
        try:
            with open(file, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise FlowkitError(f"Failed to parse {file}: {e}") from e

        file_flows = data.get("flows") if isinstance(data, dict) else None
        if isinstance(file_flows, list):
            flows.extend(file_flows)
        elif file_flows:
            flows.append(file_flows)
        else:
            logger.warning(f"No 'flows' array found in {file}")
    merged["flows"] = flows

    if target.is_file():
        backup = target.with_name(target.name + ".bak")
        shutil.copyfile(target, backup)
        logger.info(f"Backed up {target} to {backup}")

    with open(target, "w", encoding="utf-8") as f:
        yaml.safe_dump(merged, f, sort_keys=False, allow_unicode=True)

    logger.info(f"Merged {len(flows)} flow(s) from {len(files)} file(s) into {target}")
    return len(flows)
