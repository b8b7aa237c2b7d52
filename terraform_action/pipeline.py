import os
import sys
import jinja2

from . import core, __version__
from .config import ActionSettings
from .parser import (
    PlanSummary,
    TerraformOutput,
    output_name,
    output_value,
    outputs_table,
    parse_plan_summary,
    parse_tf_outputs,
)
from .terraform import TfCLI

TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "templates")


class ActionPipeline:

    init_result = False
    workspace_result = False
    format_result = False
    validate_result = False
    plan_result = False
    apply_result = False
    destroy_result = False

    def __init__(self, settings: ActionSettings) -> None:
        self.settings = settings
        self.plan_output = ""
        self.raw_outputs = ""
        self.summary: PlanSummary | None = None
        self.tf_outputs: dict[str, TerraformOutput] = {}

    @property
    def bin_plan(self):
        """Terraform binary plan file, relative to the working directory"""
        return "tfplan"

    def _check(self, title: str, ret_code: int, message: str | None = None) -> bool:
        """Logs the step result and stops the action on a non zero return code."""
        result = ret_code == 0
        core.debug(f"{title} result is {result} with return code {ret_code}")

        if not result:
            core.set_failed(message or f"The process 'terraform' failed with exit code {ret_code}", title=title)

        return result

    def init(self) -> "ActionPipeline":
        """Runs terraform init.

        Returns:
            ActionPipeline: Self for chaining.
        """
        with core.group("Terraform Init"):
            with TfCLI("init") as cli:
                ret_code = cli()
            self.init_result = self._check("Terraform Init", ret_code)

        return self

    def workspace(self) -> "ActionPipeline":
        """Selects the workspace, creating it if needed. Nothing to do for `default`.

        Returns:
            ActionPipeline: Self for chaining.
        """
        if self.settings.workspace == "default":
            self.workspace_result = True
            return self

        with core.group("Terraform Select Workspace"):
            with TfCLI("workspace", "select", "-or-create", self.settings.workspace) as cli:
                ret_code = cli()
            self.workspace_result = self._check("Terraform Workspace", ret_code)

        return self

    def format(self) -> "ActionPipeline":
        """Runs terraform format check when enabled.

        Returns:
            ActionPipeline: Self for chaining.
        """
        if not self.settings.check_format:
            return self

        with core.group("Terraform Format"):
            with TfCLI("fmt", "-check", "-no-color") as cli:
                ret_code = cli()
            self.format_result = self._check("Terraform Format", ret_code)

        return self

    def validate(self) -> "ActionPipeline":
        """Runs terraform validate when enabled.

        Returns:
            ActionPipeline: Self for chaining.
        """
        if not self.settings.validate_module:
            return self

        with core.group("Terraform Validate"):
            with TfCLI("validate", "-no-color") as cli:
                ret_code = cli()
            self.validate_result = self._check("Terraform Validate", ret_code)

        return self

    def plan(self) -> "ActionPipeline":
        """Runs terraform plan, echoing to the log while keeping the text to
        publish the change counts and the job summary.

        Returns:
            ActionPipeline: Self for chaining.
        """
        with core.group("Terraform Plan"):
            tf_args = ["plan", "-no-color", "-input=false", f"-out={self.bin_plan}"]

            with TfCLI(*tf_args, stdout=True) as cli:
                ret_code = cli()
                self.plan_output = cli.stdout or ""
            self.plan_result = self._check("Terraform Plan", ret_code, "Terraform plan failed.")

            self.summary = parse_plan_summary(self.plan_output)
            for name, value in self.summary.outputs().items():
                core.set_output(name, value)

            core.append_summary(self._template("Plan.md").render(
                plan_txt=self.plan_output,
                summary=self.summary,
                version=__version__,
            ))

        return self

    def apply(self) -> "ActionPipeline":
        """Applies the saved plan and collects `terraform output -json`.

        Returns:
            ActionPipeline: Self for chaining.
        """
        if not (self.plan_result and os.path.exists(self.bin_plan)):
            core.debug("Terraform apply could not find plan.")
            return self

        with core.group("Terraform Apply"):
            with TfCLI("apply", "-no-color", "-input=false", "-auto-approve", self.bin_plan) as cli:
                ret_code = cli()
            self.apply_result = self._check("Terraform Apply", ret_code)

            # outputs can hold sensitive values, keep them out of the log
            with TfCLI("output", "-json", stdout=True, echo=False) as cli:
                ret_code = cli()
                self.raw_outputs = cli.stdout or ""
            self._check("Terraform Output", ret_code)

        return self

    def outputs(self) -> "ActionPipeline":
        """Publishes every terraform output as `terraform-<name>` and adds the
        outputs table to the job summary.

        Returns:
            ActionPipeline: Self for chaining.
        """
        if not self.apply_result:
            return self

        with core.group("Terraform Outputs"):
            self.tf_outputs = parse_tf_outputs(self.raw_outputs)

            for key, output in self.tf_outputs.items():
                name = output_name(key)
                core.info(f"Setting output {name}")
                core.set_output(name, output_value(output.value))

            core.append_summary(self._template("Outputs.md").render(
                outputs_txt=outputs_table(self.tf_outputs),
                version=__version__,
            ))

        return self

    def destroy(self) -> "ActionPipeline":
        """Runs terraform destroy.

        Returns:
            ActionPipeline: Self for chaining.
        """
        with core.group("Terraform Destroy"):
            with TfCLI("destroy", "-no-color", "-auto-approve") as cli:
                ret_code = cli()
            self.destroy_result = self._check("Terraform Destroy", ret_code)

        return self

    def cleanup(self):
        """Final checks, returns exit code"""
        checks = [self.init_result, self.workspace_result]
        if self.settings.check_format:
            checks.append(self.format_result)
        if self.settings.validate_module:
            checks.append(self.validate_result)

        match self.settings.command:
            case "plan":
                checks.append(self.plan_result)
            case "apply":
                checks += [self.plan_result, self.apply_result]
            case "destroy":
                checks.append(self.destroy_result)

        if all(checks):
            core.debug(f"Exiting {self.settings.command} successfully with code 0")
            sys.exit(0)

        core.debug(f"Exiting {self.settings.command} unsuccessfully with code 1")
        sys.exit(1)

    def _template(self, name: str) -> jinja2.Template:
        with open(os.path.join(TEMPLATE_DIR, name)) as f:
            return jinja2.Environment(keep_trailing_newline=True).from_string(f.read())
