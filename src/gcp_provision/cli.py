from __future__ import annotations

import sys
from typing import List, Optional

from .config import RunConfig, load_run_config
from .gcloud import CommandExecutor, Gcloud
from .logging import LogConfig, get_logger, setup_logging
from .pipeline import run_pipeline
from .prompts import Prompter, RichPrompter
from .report import print_report
from .steps import StepContext
from .util.errors import ExitCode, as_exit_code

LOG = get_logger(__name__)


def cmd_provision(
    cfg: RunConfig,
    prompter: Optional[Prompter] = None,
    executor: Optional[CommandExecutor] = None,
) -> int:
    ctx = StepContext(
        cfg=cfg,
        gcloud=Gcloud(executor or CommandExecutor(), binary=cfg.gcloud),
        prompter=prompter or RichPrompter(),
    )
    state = run_pipeline(ctx)
    print_report(state, cfg)
    return int(ExitCode.OK)


def main(argv: Optional[List[str]] = None) -> None:
    try:
        cfg = load_run_config(argv)
        setup_logging(LogConfig(level=cfg.log_level, json_logs=cfg.json_logs))
        sys.exit(cmd_provision(cfg))
    except SystemExit:
        raise
    except KeyboardInterrupt as e:
        setup_logging(LogConfig())
        LOG.error("Aborted")
        sys.exit(as_exit_code(e))
    except Exception as e:
        setup_logging(LogConfig())
        LOG.error("%s", e, extra={"error": str(e), "error_type": type(e).__name__})
        sys.exit(as_exit_code(e))


if __name__ == "__main__":
    main()
