"""Atomic batch execution against an HTLC deployment.

A relayer submits an ordered list of calls; they run one after another
with the submitter's identity forwarded as the caller. If any call fails,
every effect of the earlier calls in the batch is rolled back before the
error is raised, so a partial batch is never observable.
"""

import logging
from typing import Any, Callable, Dict, List, Protocol, Sequence, Union

from eth_utils import function_signature_to_4byte_selector, is_hexstr, to_bytes

from .errors import MulticallError
from .htlc.types import Call
from .htlc.utils import normalize_address

log = logging.getLogger(__name__)


class MulticallTarget(Protocol):
    """A deployment whose entrypoints can be batched."""

    def entrypoints(self) -> Dict[str, Callable[..., Any]]:
        ...

    def snapshot(self) -> Any:
        ...

    def restore(self, snapshot: Any) -> None:
        ...

    def commit(self) -> None:
        ...


def get_selector_from_name(name: str) -> bytes:
    """Return the 4-byte selector of an entrypoint name (keccak of the name)."""
    return function_signature_to_4byte_selector(name)


class Multicall:
    """Executes batches of calls against one target, all or nothing."""

    def multicall(
        self,
        caller: str,
        target: MulticallTarget,
        calls: Sequence[Union[Call, tuple]],
    ) -> List[Any]:
        """Run ``calls`` in order against ``target`` on behalf of ``caller``.

        Args:
            caller: Principal submitting the batch, forwarded to every call
            target: Deployment exposing ``entrypoints`` and snapshot, restore
                and commit hooks
            calls: Ordered ``Call`` objects or ``(selector, args)`` tuples

        Returns:
            The return value of each call, in order

        Raises:
            MulticallError: If any call fails or names an unknown selector;
                ``cause`` holds the original error
        """
        caller = normalize_address(caller, "caller")
        resolved = []
        for index, call in enumerate(calls):
            try:
                resolved.append(self._resolve(target, call))
            except ValueError as e:
                # Nothing has run yet, so there is nothing to roll back
                raise MulticallError(index, e) from e

        snapshot = target.snapshot()
        results: List[Any] = []
        for index, (func, args) in enumerate(resolved):
            try:
                results.append(func(caller, *args))
            except Exception as e:
                target.restore(snapshot)
                log.warning("Multicall from %s rolled back at call %d/%d: %s",
                            caller, index, len(resolved), e)
                raise MulticallError(index, e) from e

        target.commit()
        log.info("Multicall from %s executed %d call(s)", caller, len(resolved))
        return results

    @staticmethod
    def _resolve(target: MulticallTarget, call: Union[Call, tuple]) -> tuple:
        if not isinstance(call, Call):
            selector, args = call
            call = Call(selector, tuple(args))

        entrypoints = target.entrypoints()
        if isinstance(call.selector, str) and call.selector in entrypoints:
            return entrypoints[call.selector], tuple(call.args)

        selector = call.selector
        if isinstance(selector, str) and is_hexstr(selector):
            selector = to_bytes(hexstr=selector)
        for name, func in entrypoints.items():
            if get_selector_from_name(name) == selector:
                return func, tuple(call.args)
        raise ValueError(f"Multicall: unknown selector {call.selector!r}")
