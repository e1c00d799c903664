import argparse
import asyncio
import sys
import structlog
from .config import Settings
from .errors import ConfigError
from .graph import create_report_graph, initial_state
from .logging_config import configure_logging
from .reports import REPORTS

logger = structlog.get_logger()


async def run_report(name: str, settings: Settings, **graph_kwargs) -> bool:
    """Runs one report end to end. Returns True when the message was published."""
    report = REPORTS[name](settings)
    logger.info("Starting bug report", report=name)

    app = create_report_graph(report, settings, **graph_kwargs)
    final_state = await app.ainvoke(initial_state())

    if final_state.get("error"):
        logger.error("Report finished with error", report=name, error=final_state["error"])
        return False

    logger.info("Report completed successfully", report=name, total_tasks=len(final_state["tasks"]))
    return final_state.get("sent", False)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Publish a bug report to Teamwork Chat.")
    parser.add_argument("report", choices=sorted(REPORTS), help="which report to run")
    args = parser.parse_args(argv)

    try:
        settings = Settings.from_env()
    except ConfigError as e:
        configure_logging()
        logger.error("Invalid configuration", error=str(e))
        return 1

    configure_logging(settings.log_level, settings.log_format)
    return 0 if asyncio.run(run_report(args.report, settings)) else 1


def stale_bugs() -> int:
    return main(["stale"])


def top_bugs() -> int:
    return main(["top"])


if __name__ == "__main__":
    sys.exit(main())
