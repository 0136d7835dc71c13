"""Canary rollout example: an operator walks a canary through traffic stages.

The operator raises the canary's traffic share in steps, watches the
telemetry windows at each step, and then either promotes the canary or
rolls it back.

## Timeline

```
t=0      t=30        t=90          t=92 / t=93.5
|--------|-----------|-------------|
 10% split  50% split   decision    promote done / rollback done
```

Decision rule (from the strategy document): canary error rate must stay
within twice the stable error rate and canary latency within 20% of stable
latency. With the default baselines the canary is 20% slower, so it is
usually rolled back; lower ``--canary-latency`` to see a promotion.
"""

from __future__ import annotations

import argparse
from dataclasses import replace

import canarysim
from canarysim.rollout import (
    CANARY_BASELINE,
    RolloutConfig,
    RolloutSession,
    RolloutSnapshot,
    Slot,
)

STAGES = [(10, 30.0), (50, 60.0)]
MAX_LATENCY_RATIO = 1.2
MAX_ERROR_RATIO = 2.0


def print_snapshot(label: str, session: RolloutSession) -> RolloutSnapshot:
    snapshot = session.snapshot()
    stable_window = session.controller.window(Slot.STABLE)
    canary_window = session.controller.window(Slot.CANARY)
    logs = session.controller.logs

    print(f"\n[{label}] t={session.now.to_seconds():.2f}s phase={snapshot.phase.value}")
    for slot in Slot:
        deployment = snapshot.deployment(slot)
        print(
            f"  {slot.value:<7} {deployment.version} x{deployment.instance_count} "
            f"{deployment.status.value}"
        )
    print(f"  split={snapshot.traffic_split}% simulated_time={snapshot.simulated_time}")
    print(
        f"  latency stable={stable_window.mean_latency():.1f}ms "
        f"canary={canary_window.mean_latency():.1f}ms "
        f"(canary p95={canary_window.latency_percentile(0.95):.1f}ms)"
    )
    print(
        f"  errors  stable={logs.error_rate(Slot.STABLE):.1%} "
        f"canary={logs.error_rate(Slot.CANARY):.1%} over {len(logs)} requests"
    )
    return snapshot


def canary_is_healthy(session: RolloutSession) -> bool:
    controller = session.controller
    stable_latency = controller.window(Slot.STABLE).mean_latency()
    canary_latency = controller.window(Slot.CANARY).mean_latency()
    stable_errors = controller.logs.error_rate(Slot.STABLE)
    canary_errors = controller.logs.error_rate(Slot.CANARY)

    latency_ok = canary_latency <= stable_latency * MAX_LATENCY_RATIO
    errors_ok = canary_errors <= max(stable_errors * MAX_ERROR_RATIO, 0.05)
    return latency_ok and errors_ok


def run_canary_rollout(seed: int = 42, canary_latency: float = CANARY_BASELINE.latency_ms) -> None:
    config = RolloutConfig(canary_baseline=replace(CANARY_BASELINE, latency_ms=canary_latency))
    session = RolloutSession(config=config, seed=seed)

    for split, duration_s in STAGES:
        session.set_traffic_split(split)
        session.advance(duration_s)
        print_snapshot(f"{split}% canary", session)

    if canary_is_healthy(session):
        result = session.promote()
        settle_s = config.promote_delay
    else:
        result = session.rollback()
        settle_s = config.rollback_delay + config.provision_delay

    print(f"\nDecision: {result.command} (accepted={result.accepted})")
    rejected = session.promote()
    print(f"Second command while transitioning: accepted={rejected.accepted} ({rejected.reason})")

    session.advance(settle_s)
    print_snapshot("after transition", session)

    stats = session.controller.stats
    print(
        f"\nStats: metric_ticks={stats.metric_ticks} requests_logged={stats.requests_logged} "
        f"rejected={stats.commands_rejected}"
    )


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("--seed", type=int, default=42)
    parser.add_argument("--canary-latency", type=float, default=CANARY_BASELINE.latency_ms)
    parser.add_argument("--log-level", default=None)
    args = parser.parse_args()

    if args.log_level:
        canarysim.enable_console_logging(level=args.log_level)
    else:
        canarysim.configure_from_env()

    run_canary_rollout(seed=args.seed, canary_latency=args.canary_latency)


if __name__ == "__main__":
    main()
