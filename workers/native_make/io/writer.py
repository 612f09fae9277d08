"""
Writer — serialize the build receipt to JSON.

Filesystem layout:
    <target_dir>/build_receipt.json
"""
import json
from pathlib import Path

from native_make.io.schema import BuildReceipt

RECEIPT_FILENAME = "build_receipt.json"


def write_receipt(receipt: BuildReceipt, target_dir: Path) -> Path:
    """
    Write build_receipt.json into *target_dir*.

    Creates *target_dir* if it does not exist.
    Returns the receipt path.
    """
    target_dir.mkdir(parents=True, exist_ok=True)
    receipt_path = target_dir / RECEIPT_FILENAME
    receipt_path.write_text(
        json.dumps(
            receipt.model_dump(mode="json"),
            indent=2,
            sort_keys=True,
        )
        + "\n"
    )
    return receipt_path
