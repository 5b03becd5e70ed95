# corekit

Building blocks for event-driven Python programs: a priority-ordered main
loop with timeouts, idle callbacks and descriptor polling, levelled logging
by domain, n-ary trees, per-thread slots, a table of spaced primes, and
shared-library file names. It has no dependencies beyond the standard
library.

## Main loop: `corekit.mainloop` and `corekit.sources`

A `MainContext` holds sources sorted by priority (lower numbers first;
sources of equal priority keep the order they were added in) and a list of
`PollFD` records to wait on. A `MainLoop` runs iterations of a context until
`quit()` is called. Without a context argument, `MainLoop` uses one shared
context.

```python
from corekit.mainloop import MainContext, MainLoop

context = MainContext()
loop = MainLoop(context)
ticks = []

def tick(data):
    ticks.append(data)
    if len(ticks) == 3:
        loop.quit()
        return False          # returning False removes the source
    return True

context.timeout_add(10, tick, "tick")
loop.run()
print(ticks)  # ['tick', 'tick', 'tick']
```

`MainContext` offers:

- `timeout_add(interval, function, data=None, priority=PRIORITY_DEFAULT, notify=None)`
  calls `function(data)` every `interval` milliseconds while it returns true.
- `idle_add(function, data=None, priority=PRIORITY_DEFAULT_IDLE, notify=None)`
  calls `function(data)` whenever nothing of higher priority is ready.
  `idle_remove_by_data(data)` removes one again.
- `add(priority, can_recurse, funcs, source_data, user_data=None, notify=None)`
  adds a source driven by a `SourceFuncs` object and returns its tag.
- `remove(tag)`, `remove_by_user_data`, `remove_by_source_data` and
  `remove_by_funcs_user_data` remove the first matching source and return
  whether one was found. When a source goes, `notify(user_data)` and
  `funcs.destroy(source_data)` are called.
- `pending()` says whether any source is ready; `iteration(block)` runs one
  iteration and returns whether anything was dispatched.
- `add_poll(fd, priority=PRIORITY_DEFAULT)` and `remove_poll(fd)` manage the
  `PollFD` records waited on in each iteration; the conditions found are put
  in each record's `revents` (see `IOCondition`).
- `set_poll_func(func)` replaces the function that waits on descriptors;
  `None` restores the default (`select.poll` where available, otherwise
  `select_poll`, which uses `select.select`).

Priorities are `PRIORITY_HIGH` (-100), `PRIORITY_DEFAULT` (0),
`PRIORITY_HIGH_IDLE` (100), `PRIORITY_DEFAULT_IDLE` (200) and
`PRIORITY_LOW` (300). Adding a source or poll record wakes a loop that is
waiting in another thread.

In `corekit.sources`, `SourceFuncs` describes a kind of source through four
behaviours, given as callables or overridden in a subclass: `prepare` returns
`(ready, timeout_ms)`, `check` says whether to dispatch after polling,
`dispatch` runs the source and returns false to have it removed, and
`destroy` releases its data. `TimeoutFuncs` and `IdleFuncs` are the built-in
behaviours behind timeouts and idle callbacks; `TimeoutData` holds a
timeout's interval, callback and next expiry. `current_time()` returns the
wall-clock time as a `TimeVal(sec, usec)`.

## Logging: `corekit.messages`

A `MessageSystem` sends each message to the handler registered for its
domain and level, or to `default_handler`, which writes lines such as
`"\napp-WARNING **: disk full\n"` to stderr (errors, criticals, warnings) or
stdout (messages, info, debug). `format_default_message(domain, level,
message)` returns that text.

```python
from corekit.messages import LogLevelFlags, MessageSystem

messages = MessageSystem()
seen = []
messages.set_handler(
    "app", LogLevelFlags.LEVEL_WARNING,
    lambda domain, level, text, user_data: seen.append(text),
)
messages.log("app", LogLevelFlags.LEVEL_WARNING, "disk %d%% full", 90)
print(seen)  # ['disk 90% full']
```

- `set_fatal_mask(domain, mask)` and `set_always_fatal(mask)` choose the
  fatal levels; errors are always fatal. After a fatal message has been
  handled, `log` raises `FatalLogError`.
- A message with several level bits is dispatched once per bit, highest
  first. Messages are cut to 1024 characters.
- `remove_handler(domain, handler_id)` logs a warning if the handler is not
  found.
- `print` and `printerr` write to stdout and stderr unless replaced with
  `set_print_handler` and `set_printerr_handler`.
  `set_error_handler`, `set_warning_handler` and `set_message_handler` catch
  domainless errors, warnings and messages in the default handler.
- `default_messages()` returns a process-wide `MessageSystem`; the
  module-level `log` and `warning` go through it.

## Trees: `corekit.tree`

`Node(data)` is a node of an n-ary tree with ordered children.

```python
from corekit.tree import Node, TraverseFlags, TraverseType

root = Node("root")
a = root.append(Node("a"))
a.append(Node("a1"))
root.append(Node("b"))

names = []
root.traverse(TraverseType.PRE_ORDER, TraverseFlags.ALL, -1,
              lambda node: names.append(node.data))
print(names)                                                   # ['root', 'a', 'a1', 'b']
print(root.find(TraverseType.LEVEL_ORDER, TraverseFlags.LEAFS, "b").data)  # b
print(root.max_height(), root.n_nodes(TraverseFlags.LEAFS))    # 3 2
```

Nodes can be inserted (`insert`, `insert_before`, `append`, `prepend`),
detached (`unlink`, `destroy`) and queried (`get_root`, `is_root`,
`is_leaf`, `is_ancestor`, `depth`, `nth_child`, `last_child`, `n_children`,
`find_child`, `child_position`, `child_index`, `first_sibling`,
`last_sibling`, `children_foreach`, `reverse_children`). `traverse` walks in
pre-, post-, in- or level order, optionally limited to `max_depth` levels,
and stops as soon as the function returns a true value.

## Per-thread slots: `corekit.threadlocal`

A `StaticPrivate` is a key under which each thread keeps its own value.
`set(data, notify)` stores a value for the calling thread and calls the
notify of any value it replaces; `get()` returns the value or `None`.
`release_thread_data()` drops all of the calling thread's values and calls
their notifies.

## Primes: `corekit.primes`

`spaced_primes_closest(num)` returns the smallest prime greater than `num`
from a fixed, widely spaced table (`SPACED_PRIMES`), useful for sizing hash
tables; numbers past the table get its largest prime, 13845163.

```python
from corekit.primes import spaced_primes_closest

spaced_primes_closest(100)  # 109
```

## Shared-library names: `corekit.modulepath`

`build_path(directory, module_name, style=NATIVE_STYLE)` returns the file
name of a shared library under one of the conventions of `ModuleStyle`:

```python
from corekit.modulepath import ModuleStyle, build_path

build_path("/opt/lib", "foo", ModuleStyle.DL)    # '/opt/lib/libfoo.so'
build_path(None, "foo", ModuleStyle.DLD)         # 'libfoo.sl'
build_path("C:\\mods", "bar.DLL", "win32")       # 'C:\\mods\\bar.DLL'
```

## What it does not do

`corekit.modulepath` only builds file names. The package does not open
shared libraries, look up symbols in them or keep count of loaded modules,
and it has no command-line program.

## Tests

The tests use pytest, which the `test` extra installs.