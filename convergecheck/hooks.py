"""Host-side dispatch of post-convergence report hooks.

``run`` calls every registered handler with the run status and collects
their results; a handler that raises is logged and the others still run.
``terminate_if_failed`` is the later termination point, called once the
whole hook queue has drained.
"""

import logging

logger = logging.getLogger("convergecheck.hooks")


class ReportHooks:
    def __init__(self, handlers=None):
        self.handlers = list(handlers or [])

    def register(self, handler):
        self.handlers.append(handler)
        return handler

    def run(self, run_status):
        results = []
        for handler in self.handlers:
            name = type(handler).__name__
            logger.debug("Running report handler %s", name)
            try:
                results.append(handler.report(run_status))
            except Exception:
                logger.exception("Report handler %s failed", name)
                results.append(None)
        return results

    @staticmethod
    def terminate_if_failed(results):
        """Raise SystemExit for the first result that asks to fail the run."""
        for result in results:
            if getattr(result, "should_terminate", False):
                logger.error("%s", result.message)
                raise SystemExit(result.exit_code)
