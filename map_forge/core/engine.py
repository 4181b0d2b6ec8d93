"""Mapping generation engine.

The MappingEngine runs a generation pass over declared types:

1. extract and validate every declaring type (errors disable that type only);
2. link every valid directive to the name of its generated function;
3. plan and synthesize one job per directive, optionally on a thread pool;
4. merge job outputs in job order and render the module text.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any

from map_forge.codegen.imports import ImportSet
from map_forge.codegen.synthesizer import CodeSynthesizer, GeneratedFunction
from map_forge.codegen.writer import render_module
from map_forge.core.config import GeneratorConfig
from map_forge.core.diagnostics import Diagnostic, DiagnosticReporter
from map_forge.core.exceptions import GenerationCancelledError, MaterializationError
from map_forge.mapping.enums import EnumMappingPlan, EnumValueMapper
from map_forge.mapping.naming import map_function_name, projection_function_name
from map_forge.mapping.plan import MappingPlan
from map_forge.mapping.planner import FieldResolutionPlanner
from map_forge.mapping.strategy import Link, LinkIndex
from map_forge.mapping.validation import DirectiveValidator, resolve_derived_pairs
from map_forge.model.descriptors import MappingDirective, TypeDescriptor
from map_forge.model.extractor import TypeModelExtractor, is_open_to_augmentation

logger = logging.getLogger(__name__)

_GENERATED_MODULE = "map_forge.generated"
_GENERATED_MARKER = "__map_forge_generated__"


@dataclass(frozen=True)
class GenerationResult:
    """Output of one generation pass."""

    source: str
    functions: tuple[GeneratedFunction, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    plans: tuple[MappingPlan | EnumMappingPlan, ...] = field(default=(), compare=False)
    failed_types: tuple[str, ...] = ()
    bindings: dict[str, Any] = field(default_factory=dict, compare=False, repr=False)

    @property
    def errors(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if d.is_error)

    @property
    def warnings(self) -> tuple[Diagnostic, ...]:
        return tuple(d for d in self.diagnostics if not d.is_error)

    @property
    def has_errors(self) -> bool:
        return bool(self.errors)

    def passed(self, *, strict: bool = False) -> bool:
        """No errors, and no warnings either when ``strict``."""
        return not self.has_errors and not (strict and self.warnings)

    def function(self, name: str) -> GeneratedFunction:
        for fn in self.functions:
            if fn.name == name:
                return fn
        raise KeyError(name)

    @property
    def function_names(self) -> list[str]:
        return [fn.name for fn in self.functions]


@dataclass(frozen=True)
class _Job:
    index: int
    descriptor: TypeDescriptor
    directive: MappingDirective


@dataclass
class _JobOutput:
    functions: list[GeneratedFunction]
    plans: list[MappingPlan | EnumMappingPlan]
    diagnostics: tuple[Diagnostic, ...]
    imports: ImportSet


class MappingEngine:
    """Runs generation passes.

    The extractor is kept across passes so unchanged declarations are not
    rebuilt.

    Args:
        config: Generator settings; defaults to ``GeneratorConfig()``.
        extractor: Shared type model extractor.
    """

    def __init__(
        self,
        config: GeneratorConfig | None = None,
        extractor: TypeModelExtractor | None = None,
    ) -> None:
        self._config = config or GeneratorConfig()
        self._extractor = extractor or TypeModelExtractor()

    @property
    def config(self) -> GeneratorConfig:
        return self._config

    @property
    def extractor(self) -> TypeModelExtractor:
        return self._extractor

    def generate(
        self,
        types: Iterable[type],
        *,
        cancel: threading.Event | None = None,
    ) -> GenerationResult:
        """Generate conversion functions for every directive declared on ``types``.

        Raises:
            GenerationCancelledError: If ``cancel`` is set before the pass completes.
        """
        declaring = list(dict.fromkeys(types))
        reporter = DiagnosticReporter()
        validator = DirectiveValidator(self._extractor, reporter)

        valid: list[TypeDescriptor] = []
        failed: list[str] = []
        for cls in declaring:
            self._check_cancel(cancel, 0, len(declaring))
            descriptor = self._extractor.extract(cls)
            if not descriptor.directives:
                continue
            if validator.validate_type(descriptor):
                valid.append(descriptor)
            else:
                failed.append(descriptor.qualname)

        links = LinkIndex()
        for descriptor in valid:
            for directive in descriptor.directives:
                self._link(links, descriptor, directive)

        pairs = [(descriptor, directive) for descriptor in valid for directive in descriptor.directives]
        jobs = [_Job(index, descriptor, directive) for index, (descriptor, directive) in enumerate(pairs)]
        outputs = self._run_jobs(jobs, links, cancel)
        return self._merge(reporter, outputs, tuple(failed))

    # --- linking ---

    def _link(self, links: LinkIndex, descriptor: TypeDescriptor, directive: MappingDirective) -> None:
        source = descriptor.py_type
        target = directive.target
        forward = Link(
            source=source,
            target=target,
            function_name=map_function_name(source, target),
            directive=directive,
            declaring_type=source,
            polymorphic=bool(descriptor.derived_pairs) and not descriptor.is_enum,
        )
        if not links.add(forward):
            logger.warning("Mapping %s -> %s is declared more than once", source.__name__, target.__name__)
        if directive.bidirectional:
            reverse = Link(
                source=target,
                target=source,
                function_name=map_function_name(target, source),
                directive=directive,
                declaring_type=source,
                reverse=True,
            )
            if not links.add(reverse):
                logger.warning(
                    "Reverse mapping %s -> %s is declared more than once", target.__name__, source.__name__
                )

    @staticmethod
    def _owns(links: LinkIndex, source: type, target: type, directive: MappingDirective, reverse: bool) -> bool:
        link = links.get(source, target)
        return link is not None and link.directive is directive and link.reverse is reverse

    # --- jobs ---

    def _run_jobs(
        self, jobs: list[_Job], links: LinkIndex, cancel: threading.Event | None
    ) -> list[_JobOutput]:
        total = len(jobs)
        workers = self._config.max_workers or 1
        outputs: list[_JobOutput] = []

        if workers <= 1 or total <= 1:
            for job in jobs:
                self._check_cancel(cancel, len(outputs), total)
                output = self._run_job(job, links, cancel)
                if output is not None:
                    outputs.append(output)
            self._check_cancel(cancel, len(outputs), total)
            return outputs

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="map-forge") as pool:
            futures: list[Future[_JobOutput | None]] = [
                pool.submit(self._run_job, job, links, cancel) for job in jobs
            ]
            for future in futures:
                output = future.result()
                if cancel is not None and cancel.is_set():
                    for pending in futures:
                        pending.cancel()
                    raise GenerationCancelledError(len(outputs), total)
                if output is not None:
                    outputs.append(output)
        return outputs

    def _run_job(
        self, job: _Job, links: LinkIndex, cancel: threading.Event | None
    ) -> _JobOutput | None:
        if cancel is not None and cancel.is_set():
            return None

        reporter = DiagnosticReporter()
        imports = ImportSet()
        synthesizer = CodeSynthesizer(self._config, imports)
        functions: list[GeneratedFunction] = []
        plans: list[MappingPlan | EnumMappingPlan] = []

        source = job.descriptor
        directive = job.directive
        target = self._extractor.extract(directive.target)
        forward_name = map_function_name(source.py_type, target.py_type)
        reverse_name = map_function_name(target.py_type, source.py_type)
        owns_forward = self._owns(links, source.py_type, target.py_type, directive, False)
        owns_reverse = directive.bidirectional and self._owns(
            links, target.py_type, source.py_type, directive, True
        )

        if source.is_enum:
            mapper = EnumValueMapper(reporter)
            if owns_forward:
                plan = mapper.plan(source, target, forward_name)
                plans.append(plan)
                functions.append(synthesizer.enum_function(plan))
            if owns_reverse:
                reverse_plan = mapper.plan(
                    target, source, reverse_name, reverse=True, location=source.location_for()
                )
                plans.append(reverse_plan)
                functions.append(synthesizer.enum_function(reverse_plan))
        else:
            planner = FieldResolutionPlanner(self._extractor, links, reporter)
            if owns_forward:
                plan = planner.plan(source, target, directive, function_name=forward_name)
                plans.append(plan)
                if source.derived_pairs:
                    branches = resolve_derived_pairs(source, links, reporter)
                    functions.append(synthesizer.dispatcher(plan, branches))
                else:
                    functions.append(synthesizer.map_function(plan))
                if directive.update_target:
                    functions.append(synthesizer.update_function(plan))
                if directive.generate_projection:
                    projection = planner.plan_projection(
                        source,
                        target,
                        directive,
                        function_name=projection_function_name(source.py_type, target.py_type),
                    )
                    if projection is not None:
                        functions.append(synthesizer.projection_function(projection))
            if owns_reverse:
                reverse_plan = planner.plan(
                    target,
                    source,
                    directive,
                    function_name=reverse_name,
                    reverse=True,
                    declaring=source,
                )
                plans.append(reverse_plan)
                functions.append(synthesizer.map_function(reverse_plan))
                if directive.update_target and not source.is_frozen:
                    functions.append(synthesizer.update_function(reverse_plan))
                if directive.generate_projection:
                    reverse_projection = planner.plan_projection(
                        target,
                        source,
                        directive,
                        function_name=projection_function_name(target.py_type, source.py_type),
                        reverse=True,
                        declaring=source,
                    )
                    if reverse_projection is not None:
                        functions.append(synthesizer.projection_function(reverse_projection))

        logger.debug(
            "Job %d (%s -> %s): %d functions",
            job.index,
            source.qualname,
            target.qualname,
            len(functions),
        )
        return _JobOutput(functions, plans, reporter.diagnostics, imports)

    def _merge(
        self, reporter: DiagnosticReporter, outputs: list[_JobOutput], failed: tuple[str, ...]
    ) -> GenerationResult:
        imports = ImportSet()
        functions: list[GeneratedFunction] = []
        plans: list[MappingPlan | EnumMappingPlan] = []
        for output in outputs:
            imports.merge(output.imports)
            functions.extend(output.functions)
            plans.extend(output.plans)
            reporter.extend(output.diagnostics)

        aliases = imports.aliases()
        resolved = tuple(fn.resolved(imports.resolve(fn.text, aliases)) for fn in functions)
        source = render_module(self._config.header, imports.render(aliases), [fn.text for fn in resolved])

        result = GenerationResult(
            source=source,
            functions=resolved,
            diagnostics=reporter.diagnostics,
            plans=tuple(plans),
            failed_types=failed,
            bindings=imports.bindings(aliases),
        )
        logger.info(
            "Generated %d functions (%d errors, %d warnings)",
            len(resolved),
            len(result.errors),
            len(result.warnings),
        )
        return result

    @staticmethod
    def _check_cancel(cancel: threading.Event | None, completed: int, total: int) -> None:
        if cancel is not None and cancel.is_set():
            raise GenerationCancelledError(completed, total)

    # --- materialization ---

    def materialize(
        self, result: GenerationResult, *, attach: bool | None = None
    ) -> dict[str, Callable[..., Any]]:
        """Execute the generated functions and return them by name.

        Function bodies run in a fresh namespace pre-bound with the referenced
        classes, so classes that cannot be imported (e.g. defined inside a
        function) work as well. With ``attach`` (default: the config's
        ``attach_methods``) each function is also set on its source class as
        ``map_to_<target>`` / ``update_<target>`` / ``project_to_<target>``.

        Raises:
            MaterializationError: If the generated code does not compile or run.
        """
        namespace: dict[str, Any] = {"__name__": _GENERATED_MODULE, **result.bindings}
        code = "\n\n".join(fn.text for fn in result.functions)
        try:
            exec(compile(code, f"<{_GENERATED_MODULE}>", "exec"), namespace)  # noqa: S102
        except Exception as e:
            raise MaterializationError(str(e)) from e

        functions = {fn.name: namespace[fn.name] for fn in result.functions}
        for fn in result.functions:
            setattr(functions[fn.name], _GENERATED_MARKER, True)

        if self._config.attach_methods if attach is None else attach:
            for fn in result.functions:
                self._attach(fn, functions[fn.name])
        return functions

    @staticmethod
    def _attach(fn: GeneratedFunction, func: Callable[..., Any]) -> None:
        if not fn.method_name or not is_open_to_augmentation(fn.source):
            return
        existing = fn.source.__dict__.get(fn.method_name)
        if existing is not None and not getattr(existing, _GENERATED_MARKER, False):
            logger.warning(
                "Not attaching %s: %s already defines %s",
                fn.name,
                fn.source.__qualname__,
                fn.method_name,
            )
            return
        setattr(fn.source, fn.method_name, func)
