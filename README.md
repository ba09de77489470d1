# redcircuit

`redcircuit` takes a graph of redstone components, optimises it with a series
of passes and simulates the result tick by tick.

A circuit is a `CompileGraph` (in `redcircuit.graph`) of `CompileNode`s joined
by `CompileLink`s. Each node has a `NodeType` (repeater, torch, comparator,
lamp, button, lever, pressure plate, trapdoor, wire or constant), an optional
block `(BlockPos, block_id)`, a `NodeState`, and `is_input` / `is_output`
flags. Each link has a `LinkType` (`DEFAULT` or `SIDE`) and a distance `ss`
that is subtracted from the signal strength travelling along it.

The package has no dependencies outside the standard library.

## Installing

```
pip install .
```

For the test suite:

```
pip install .[test]
pytest
```

## Building a graph

```python
from redcircuit.graph import (
    BlockPos, CompileGraph, CompileLink, CompileNode, NodeKind, NodeType,
)

graph = CompileGraph()
lever_pos = BlockPos(0, 64, 0)
lever = graph.add_node(
    CompileNode(NodeType.simple(NodeKind.LEVER), block=(lever_pos, 1), is_input=True)
)
lamp = graph.add_node(
    CompileNode(NodeType.simple(NodeKind.LAMP), block=(BlockPos(1, 64, 0), 2), is_output=True)
)
graph.add_edge(lever, lamp, CompileLink.default(0))
```

Node indices stay valid when other nodes are removed; freed slots are reused.
Block ids are opaque integers that are carried through to the output.

## Compiler options

`CompilerOptions.parse` (in `redcircuit.options`) reads a flag string:

```python
from redcircuit.options import CompilerOptions

options = CompilerOptions.parse("-io -u --export")
# optimize, io_only, update and export are all True
```

Long flags are `--optimize`, `--export`, `--io-only`, `--update` and
`--export-dot`; short flags `o`, `e`, `i` and `u` can be combined after a
single `-`, case-insensitively. Unknown options are logged as warnings and
ignored.

## Optimisation passes

`redcircuit.compiler.default_pass_manager()` returns a `PassManager` with these
passes, run in order:

1. `ClampWeights` – removes links of length 15 or more (always runs)
2. `DedupLinks` – removes parallel links that duplicate or are longer than another
3. `AnalogRepeaters` – replaces a bank of 15 analog repeaters with one comparator
4. `ConstantFold` – turns nodes fed only by constants into constants
5. `UnreachableOutput` – drops links from subtract comparators that can never carry a signal
6. `ConstantCoalesce` – shares one constant per strength in each connected component
7. `Coalesce` – merges identical nodes driven by the same single source
8. `PruneOrphans` – removes nodes that no input or output depends on (only with both `optimize` and `io_only`)

Apart from `ClampWeights` and `PruneOrphans`, the passes run only when
`optimize` is set. Custom passes subclass `redcircuit.passes.base.Pass`.

A `TaskMonitor` (in `redcircuit.task_monitor`) tracks progress, a status
message and cancellation; it is thread-safe. A cancelled compile loads nothing.

## Simulating

```python
from redcircuit.compiler import Compiler
from redcircuit.options import CompilerOptions
from redcircuit.task_monitor import TaskMonitor

compiler = Compiler()
compiler.compile(graph, CompilerOptions.parse("-o"), [], TaskMonitor())

compiler.on_use_block(lever_pos)   # flip the lever (or press a button)
compiler.tick()                    # advance one game tick
changes = compiler.flush()         # list of BlockChange since the last flush
```

Pending ticks can be passed to `compile` as `TickEntry(pos, ticks_left,
priority)` values from `redcircuit.backend.scheduler`. `flush()` returns
`BlockChange` records (position, block id, kind, powered, output power,
locked); with `io_only` set only input and output blocks are reported.

`Compiler.reset(world)` stops the simulation and hands state back to `world`,
which must provide `schedule_tick(pos, delay, priority)`,
`set_comparator_output(pos, output_strength)` and `set_block(change)`.
`Compiler.inspect(pos)` returns the backend `Node` at a position.

The simulation runs in `DirectBackend` (in `redcircuit.backend.direct`), which
keeps a count of incoming signal strengths per node and queues ticks in a
16-slot `TickScheduler` ordered by `TickPriority`. `DirectBackend.to_dot()`
renders the compiled graph in Graphviz dot syntax; with `--export-dot` it is
also written to `backend_graph.dot` in the current directory.

## UUIDs

`redcircuit.uuid_format.HyphenatedUUID` holds a 128-bit integer, prints it in
hyphenated 8-4-4-4-12 form and parses hex text with or without hyphens.

## What it does not do

- It does not read a world or discover components: the graph, with its nodes
  and links, must be built by the caller.
- The `export` and `update` options are parsed and kept, but nothing in the
  package acts on them: no graph export file is written and `reset` does not
  update blocks in a region.
- It does not write blocks into a world itself; it returns `BlockChange`
  records and calls back into the world object given to `reset`.
- There is no command-line program or server.