import os

from . import core
from .pipeline import ActionPipeline
from .config import Settings


def main() -> None:
    settings = Settings().config

    if settings.working_directory:
        os.chdir(settings.working_directory)

    pipeline = (
        ActionPipeline(settings)
        .init()
        .workspace()
        .format()
        .validate()
    )

    match settings.command:
        case "plan":
            pipeline.plan()
        case "apply":
            pipeline.plan().apply().outputs()
        case "destroy":
            pipeline.destroy()

    pipeline.cleanup()


def run() -> None:
    """Anything unexpected fails the step instead of dumping a traceback."""
    try:
        main()
    except Exception as e:
        core.set_failed(str(e) or "An unknown error occurred")


if __name__ == "__main__":
    run()
