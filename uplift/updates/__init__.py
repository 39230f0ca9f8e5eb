"""Update engine — two-phase update units, their queue and the drain.

- SystemUpdate: contract implemented by every update unit
- UpdateRegistry: runs direct phases, queues units that succeeded
- UpdateRunner: drains the queue, running async phases in order
- UpdateSystem: owns one registry and one runner
"""
