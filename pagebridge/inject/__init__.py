"""Cascading injection of element trees into a target builder runtime."""
from pagebridge.inject.bridge import BridgeRuntime, RequestBridge
from pagebridge.inject.fallback import (
    SUGGESTED_ACTIONS,
    ManualExport,
    as_injection_error,
    classify_failure,
    classify_message,
)
from pagebridge.inject.injector import CascadingInjector, InjectionOutcome, InjectorState
from pagebridge.inject.runtime import InsertionPoint, TargetRuntime
from pagebridge.inject.strategies import (
    ClipboardChannelStrategy,
    DirectViewStrategy,
    InjectionResult,
    InjectionStrategy,
    InsertionTracker,
    StructuredCreateStrategy,
    build_strategies,
)

__all__ = [
    "CascadingInjector",
    "InjectionOutcome",
    "InjectorState",
    "TargetRuntime",
    "InsertionPoint",
    "RequestBridge",
    "BridgeRuntime",
    "InjectionStrategy",
    "InjectionResult",
    "InsertionTracker",
    "StructuredCreateStrategy",
    "ClipboardChannelStrategy",
    "DirectViewStrategy",
    "build_strategies",
    "ManualExport",
    "SUGGESTED_ACTIONS",
    "classify_failure",
    "classify_message",
    "as_injection_error",
]
