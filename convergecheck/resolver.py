"""Resolve declared resources to their observed state on the live host."""

import logging
import subprocess

from convergecheck.declarations import declare
from convergecheck.errors import ResolutionFailure, VerificationError
from convergecheck.providers import HostQueryError

logger = logging.getLogger("convergecheck.resolver")

# Host-side failures that mean "could not look", as opposed to "not there".
HOST_ERRORS = (OSError, subprocess.SubprocessError, HostQueryError, ValueError)


def resolve(run_context, kind, name, **options):
    """Return the observed state of ``kind``/``name``.

    Every call performs a fresh live read through the run context's
    provider lookup; nothing is cached.
    """
    declaration = declare(kind, name, **options)
    provider = run_context.provider_for(declaration)
    try:
        current = provider.load_current_resource()
    except VerificationError:
        raise
    except HOST_ERRORS as e:
        logger.debug("Resolution of %s failed", declaration, exc_info=True)
        raise ResolutionFailure(declaration, e) from e
    if current is None:
        raise ResolutionFailure(declaration, "provider returned no state")
    return current


class ResourceLookup:
    """Per-kind resolution helpers bound to one run context."""

    def __init__(self, run_context):
        self.run_context = run_context

    def resolve(self, kind, name, **options):
        return resolve(self.run_context, kind, name, **options)

    def cron(self, name, **options):
        return self.resolve("cron", name, **options)

    def directory(self, name, **options):
        return self.resolve("directory", name, **options)

    def file(self, name, **options):
        return self.resolve("file", name, **options)

    def group(self, name, **options):
        return self.resolve("group", name, **options)

    def link(self, name, **options):
        return self.resolve("link", name, **options)

    def mount(self, name, **options):
        return self.resolve("mount", name, **options)

    def network_interface(self, name, **options):
        return self.resolve("network_interface", name, **options)

    ifconfig = network_interface

    def package(self, name, **options):
        return self.resolve("package", name, **options)

    def service(self, name, **options):
        return self.resolve("service", name, **options)

    def user(self, name, **options):
        return self.resolve("user", name, **options)
