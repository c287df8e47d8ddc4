"""
check-prepublish — verification pipeline

File: src/check_prepublish/checker.py

Purpose
- Run the four pre-publish stages against one artifact and collect every
  failure into a flat report.

What should be included in this file
- ``PrepublishChecker``: construction (manifest load + kind detection) and the
  ``check()`` coroutine driving build, static file check, packaging
  simulation, and runtime exercise in that order.
- Human-readable progress lines streamed to the configured sink.

Functional requirements
- Construction errors raise; stage failures never do. Each failed stage adds
  exactly one error (the static file check adds one per missing path) and the
  run continues with the next stage.
- Every pack/install cycle cleans up its workspace and archive on all paths.
- ``check()`` can be called repeatedly; each call starts from an empty error
  list.

Non-functional requirements
- Strictly sequential: every external operation completes before the next one
  starts.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import AbstractAsyncContextManager

from check_prepublish.config import CheckerConfig
from check_prepublish.constants import DEFAULT_MODULE_ENTRY, SERVICE_VALIDATION_FUNCTION
from check_prepublish.detection import (
    detect,
    executable_name,
    service_entry,
    service_name_from_package_name,
)
from check_prepublish.domain import PackageDescriptor, PackageInfo, PackageKind, VerificationReport
from check_prepublish.manifest import load_descriptor
from check_prepublish.observability.logging import correlation_scope
from check_prepublish.observability.sinks import ConsoleSink, ProgressLogger
from check_prepublish.required_files import (
    find_excluded_entry,
    first_missing_file,
    missing_files,
    resolve_required_files,
)
from check_prepublish.service import (
    ServiceClient,
    ServiceSessionFactory,
    find_validation_routine,
    load_validation_module,
    run_validation_routine,
    service_session,
)
from check_prepublish.toolchain import NpmToolchain, PackageToolchain
from check_prepublish.workspace import InstalledPackage, executable_shim_path, installed_package

logger = logging.getLogger(__name__)

_BANNER = "========================================="


class PackageStructureError(RuntimeError):
    """The installed copy is missing a required file or ships an excluded one."""


class PrepublishChecker:
    """Pre-publish verifier for one package directory."""

    def __init__(
        self,
        config: CheckerConfig | None = None,
        *,
        toolchain: PackageToolchain | None = None,
        service_session_factory: ServiceSessionFactory | None = None,
    ) -> None:
        self._config = config if config is not None else CheckerConfig()
        self._progress: ProgressLogger = (
            self._config.logger if self._config.logger is not None else ConsoleSink()
        )
        self._descriptor = load_descriptor(self._config.package_dir)
        self._info = detect(self._descriptor)
        self._toolchain: PackageToolchain = (
            toolchain
            if toolchain is not None
            else NpmToolchain(timeout_seconds=self._config.command_timeout_seconds)
        )
        self._service_session = (
            service_session_factory if service_session_factory is not None else service_session
        )
        self._errors: list[str] = []

    @property
    def config(self) -> CheckerConfig:
        return self._config

    @property
    def descriptor(self) -> PackageDescriptor:
        return self._descriptor

    @property
    def package_info(self) -> PackageInfo:
        return self._info

    @property
    def required_files(self) -> tuple[str, ...]:
        return resolve_required_files(self._descriptor, self._config.required_files)

    async def check(self) -> VerificationReport:
        """Run all stages and return the report."""

        self._errors = []
        with correlation_scope(package=self._info.name):
            logger.info("verifying %s v%s (%s)", self._info.name, self._info.version, self._info.kind)
            self._print_header()

            await self._verify_build()
            await self._verify_required_files()
            await self._verify_package()
            await self._verify_runtime()

            self._print_summary()
            logger.info("verification finished with %d error(s)", len(self._errors))

        return VerificationReport(errors=tuple(self._errors), package_info=self._info)

    def check_sync(self) -> VerificationReport:
        return asyncio.run(self.check())

    # ------------------------------------------------------------------
    # Stage 1
    # ------------------------------------------------------------------

    async def _verify_build(self) -> None:
        self._heading("Step 1: Build Verification")

        if self._config.skip_build:
            self._log("Skipped (--no-build)")
            return
        if not self._descriptor.has_build_script:
            self._log("No build script found, skipping build step")
            return

        with correlation_scope(stage="build"):
            self._log("Running build command: npm run build")
            try:
                await self._toolchain.build(self._config.package_dir)
            except Exception as exc:  # noqa: BLE001 - stage boundary.
                self._fail(f"Build failed: {_describe(exc)}", "❌ Build failed")
                return
        self._log("✅ Build successful")

    # ------------------------------------------------------------------
    # Stage 2
    # ------------------------------------------------------------------

    async def _verify_required_files(self) -> None:
        self._heading("Step 2: File Verification")

        if self._config.skip_check_required_files:
            self._log("Skipped (--no-check-required-files)")
            return

        self._log("Verifying required files...")
        missing = set(missing_files(self._config.package_dir, self.required_files))
        for item in self.required_files:
            if item in missing:
                self._errors.append(f"Missing required file: {item}")
                self._log(f"  ❌ {item}")
            else:
                self._log(f"  ✅ {item}")

    # ------------------------------------------------------------------
    # Stage 3
    # ------------------------------------------------------------------

    async def _verify_package(self) -> None:
        self._heading("Step 3: Package Verification")

        if self._config.skip_package:
            self._log("Skipped (--no-pack)")
            return

        with correlation_scope(stage="package"):
            try:
                async with installed_package(
                    self._toolchain,
                    self._config.package_dir,
                    self._descriptor.name,
                    progress=self._progress,
                    announce=True,
                ) as installed:
                    self._log("Verifying package structure...")
                    missing = first_missing_file(installed.package_path, self.required_files)
                    if missing is not None:
                        raise PackageStructureError(f"Missing file in installed package: {missing}")
                    self._log("✅ Required files present in installed package")

                    excluded = find_excluded_entry(installed.package_path)
                    if excluded is not None:
                        raise PackageStructureError(
                            f"File/directory should NOT be in package: {excluded}"
                        )
                    self._log("✅ Excluded files not in package (src/, test/, .env*)")
            except Exception as exc:  # noqa: BLE001 - stage boundary.
                self._fail(
                    f"Package verification failed: {_describe(exc)}",
                    "❌ Package verification failed",
                )

    # ------------------------------------------------------------------
    # Stage 4
    # ------------------------------------------------------------------

    async def _verify_runtime(self) -> None:
        self._heading("Step 4: Runtime Verification")
        self._log(f"Type: {self._info.label}")

        with correlation_scope(stage="runtime"):
            if self._info.kind is PackageKind.SERVICE:
                await self._verify_service()
            elif self._info.kind is PackageKind.EXECUTABLE:
                await self._verify_executable()
            else:
                await self._verify_module_import()

    async def _verify_module_import(self) -> None:
        if self._config.skip_check_import:
            self._log("Skipped (--no-check-import)")
            return

        entry = self._descriptor.main or DEFAULT_MODULE_ENTRY
        try:
            async with self._installed() as installed:
                self._log(f"Importing module: {self._info.name}")
                await self._toolchain.import_module(
                    installed.package_path / entry,
                    cwd=installed.workspace,
                )
        except Exception as exc:  # noqa: BLE001 - stage boundary.
            self._fail(f"Failed to import module: {_describe(exc)}", "❌ Module import failed")
            return
        self._log("✅ Module imports successfully")

    async def _verify_executable(self) -> None:
        if self._config.skip_check_bin:
            self._log("Skipped (--no-check-bin)")
            return

        name = executable_name(self._descriptor)
        try:
            if name is None:
                raise PackageStructureError("no executable declared")
            async with self._installed() as installed:
                self._log(f"Running CLI: {name} --version")
                await self._toolchain.run_executable(
                    executable_shim_path(installed.workspace, name),
                    ("--version",),
                    cwd=installed.workspace,
                )
        except Exception as exc:  # noqa: BLE001 - stage boundary.
            self._fail(f"CLI execution failed: {_describe(exc)}", "❌ CLI execution failed")
            return
        self._log("✅ CLI executes successfully")

    async def _verify_service(self) -> None:
        if self._config.skip_check_service:
            self._log("Skipped (--no-check-service)")
            return

        server_name = self._info.service_name or service_name_from_package_name(self._info.name)
        try:
            async with self._installed() as installed:
                argv = self._toolchain.service_command(
                    installed.package_path / service_entry(self._descriptor)
                )
                self._log(f"Starting MCP server: {server_name}")
                async with self._service_session(
                    argv,
                    cwd=installed.workspace,
                    request_timeout_seconds=self._config.service_request_timeout_seconds,
                ) as client:
                    self._log("✅ Server started and connected")
                    if self._config.test_file:
                        await self._run_validation(client, self._config.test_file)
        except Exception as exc:  # noqa: BLE001 - stage boundary.
            self._fail(
                f"Service verification failed: {_describe(exc)}",
                "❌ Service verification failed",
            )

    async def _run_validation(self, client: ServiceClient, test_file: str) -> None:
        self._log(f"Running custom tests from {test_file}")
        module = load_validation_module(self._config.package_dir / test_file)
        routine = find_validation_routine(module)
        if routine is None:
            self._log(f"No {SERVICE_VALIDATION_FUNCTION} function found in test file")
            return
        await run_validation_routine(routine, client)
        self._log("✅ Custom tests passed")

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _installed(self) -> AbstractAsyncContextManager[InstalledPackage]:
        return installed_package(
            self._toolchain,
            self._config.package_dir,
            self._descriptor.name,
            progress=self._progress,
        )

    def _print_header(self) -> None:
        self._log("")
        self._log(_BANNER)
        self._log(f"Verifying {self._info.name} v{self._info.version}")
        self._log(f"Type: {self._info.label}")
        if self._info.service_name:
            self._log(f"Server Name: {self._info.service_name}")
        self._log(_BANNER)

    def _print_summary(self) -> None:
        self._log("")
        self._log(_BANNER)
        if not self._errors:
            self._log("✅ ALL VERIFICATION PASSED")
            self._log(_BANNER)
            self._log("Package is ready to publish!")
            return
        self._log("❌ VERIFICATION FAILED")
        self._log(_BANNER)
        for error in self._errors:
            self._log(f"  ❌ {error}")

    def _heading(self, title: str) -> None:
        self._log("")
        self._log(title)
        self._log("-" * len(title))

    def _fail(self, error: str, line: str) -> None:
        logger.debug("stage failed: %s", error)
        self._errors.append(error)
        self._log(line)

    def _log(self, line: str) -> None:
        self._progress.log(line)


def run_check(
    config: CheckerConfig | None = None,
    *,
    toolchain: PackageToolchain | None = None,
) -> VerificationReport:
    """Synchronous convenience wrapper around ``PrepublishChecker.check``."""

    return PrepublishChecker(config, toolchain=toolchain).check_sync()


def _describe(exc: BaseException) -> str:
    text = str(exc).strip()
    return text or type(exc).__name__


__all__ = ["PackageStructureError", "PrepublishChecker", "run_check"]
