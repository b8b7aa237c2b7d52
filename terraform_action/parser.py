from typing import Any
import json
import re

import pandas as pd
from pydantic import ConfigDict, Field

from . import core
from .config import BaseSchema

ADD_CHANGE_DESTROY = re.compile(r"(\d+) to add, (\d+) to change, (\d+) to destroy\.", re.ASCII)
IMPORT = re.compile(r"(\d+) to import,", re.ASCII)

OUTPUT_COLUMNS = ["Terraform Name", "Generated Name", "Type", "Value"]
MASK = "*****"


class PlanSummary(BaseSchema):
    """Resource counts from the `Plan: ...` sentence of `terraform plan`."""

    model_config = ConfigDict(frozen=True)

    to_add: int = Field(0, ge=0)
    to_change: int = Field(0, ge=0)
    to_destroy: int = Field(0, ge=0)
    to_import: int = Field(0, ge=0)

    def outputs(self) -> dict[str, str]:
        """Step outputs, keyed `to-add`, `to-change`, ..."""
        return {
            "to-add": str(self.to_add),
            "to-change": str(self.to_change),
            "to-destroy": str(self.to_destroy),
            "to-import": str(self.to_import),
        }


class TerraformOutput(BaseSchema):
    sensitive: bool = False
    type: Any = None
    value: Any


def _count(digits: str) -> int | None:
    """Converts a matched digit group. Padding zeros are dropped first; a count
    still too long for `int` is treated as no match."""
    try:
        return int(digits.lstrip("0") or "0")
    except ValueError:
        return None


def parse_plan_summary(output: str) -> PlanSummary:
    """Pulls the change counts out of the human readable plan output, e.g.

        Plan: 4 to import, 1 to add, 2 to change, 3 to destroy.

    The add/change/destroy clause and the import clause are matched separately
    and only their first occurrence counts. Whatever is not found is zero, so
    "No changes." and an unrecognised output both give an all zero summary.

    Args:
        output (str): stdout of `terraform plan -no-color`.

    Returns:
        PlanSummary: the four counts.
    """
    counts = {}

    if match := ADD_CHANGE_DESTROY.search(output):
        numbers = [_count(n) for n in match.groups()]
        if None not in numbers:
            counts["to_add"], counts["to_change"], counts["to_destroy"] = numbers

    if match := IMPORT.search(output):
        if (number := _count(match.group(1))) is not None:
            counts["to_import"] = number

    return PlanSummary(**counts)


def parse_tf_outputs(raw: str) -> dict[str, TerraformOutput]:
    """Reads `terraform output -json`. Entries without a `value` are reported
    and left out.

    Args:
        raw (str): stdout of `terraform output -json`.

    Raises:
        ValueError: the text is not a JSON object.

    Returns:
        dict[str, TerraformOutput]: outputs by their terraform name.
    """
    # terraform prints `{}` when there are no outputs, but be lenient about nothing at all
    data = json.loads(raw.strip() or "{}")
    if not isinstance(data, dict):
        raise ValueError("Terraform outputs are not a JSON object.")

    outputs = {}
    for key, output in data.items():
        if not isinstance(output, dict) or "value" not in output:
            core.warning(f"Output {key} is not in expected format")
            continue
        outputs[key] = TerraformOutput.model_validate(output)

    return outputs


def output_name(key: str) -> str:
    return f"terraform-{key}"


def output_value(value: Any) -> str:
    """Compact JSON, so strings keep their quotes."""
    return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


def value_type(value: Any) -> str:
    """Type names as a javascript consumer of the outputs would see them."""
    if isinstance(value, str):
        return "string"
    # bool before int, bool is an int
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    return "object"


def outputs_table(outputs: dict[str, TerraformOutput]) -> str:
    """Builds the markdown table for the job summary. Sensitive values are masked.

    Args:
        outputs (dict[str, TerraformOutput]): parsed terraform outputs.

    Returns:
        str: A markdown formatted table of columns
            ['Terraform Name', 'Generated Name', 'Type', 'Value']
    """
    records = []
    for key, output in outputs.items():
        value = MASK if output.sensitive else output_value(output.value)
        records.append({
            "Terraform Name": key,
            "Generated Name": output_name(key),
            "Type": value_type(output.value),
            # a bare pipe would end the cell
            "Value": value.replace("|", "\\|"),
        })

    return pd.DataFrame(records, columns=OUTPUT_COLUMNS).to_markdown(index=False, disable_numparse=True)
