# cpuchat

This package holds two small console tools:

* `cpuchat-cpu` is an interactive simulator of a tiny register machine. It
  has seven general registers (`R0`–`R6`), a status register, an
  instruction pointer, 256 bytes of memory and a step history that can be
  rolled back.
* `cpuchat-server` and `cpuchat-client` are a two-party chat over TCP. The
  server pairs two clients and relays whatever one of them sends to the
  other.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## The CPU simulator

```
cpuchat-cpu [--memory-file PATH]
```

Type `START` to begin a simulation or `EXIT` to quit. Any other input gets
the reply `Wrong command(START | EXIT)`. A simulation first prints the
initial state and then accepts these commands:

| Command         | Effect                                                         |
|-----------------|----------------------------------------------------------------|
| `ADD Rd, Rs, X` | `Rd = Rs + X`, where `X` is a register or a non-negative number |
| `SUB Rd, Rs, X` | `Rd = Rs - X`                                                  |
| `MOV Rd, X`     | `Rd = X`                                                       |
| `LOAD Rd, N`    | write the low byte of `Rd` into memory cell `N` (0–255)        |
| `STORE Rd, N`   | read memory cell `N` into `Rd` as a signed byte, then clear the cell |
| `DISC N`        | drop the last `N` recorded steps and go back to the state before them |
| `LAYO`          | print the registers and the memory                             |
| `EXIT`          | leave the simulation                                           |

Registers hold 32-bit signed values, and `ADD` and `SUB` wrap around on
overflow. A number literal larger than 2147483647 is rejected. Every
successful `ADD`, `SUB`, `MOV`, `LOAD` or `STORE` increments the instruction
pointer and appends a fixed-size snapshot of the machine to a history file.
`DISC` uses that file to restore an earlier state. The file is
`/tmp/memory.txt` unless `--memory-file` names another path, and it is
deleted when the simulation ends.

### Using it from Python

`cpuchat.machine.CPU` runs the same machine without the prompt loop. Used
as a context manager, it opens a fresh history file and removes it on exit:

```python
from cpuchat.machine import CPU, CommandError

with CPU("/tmp/cpu-history.txt") as cpu:
    cpu.execute("MOV R1, 5")
    cpu.execute("ADD R2, R1, 10")
    print(cpu.layout())
    print(cpu.registers.get("R2"))   # 15
    try:
        cpu.execute("MOV R9, 1")
    except CommandError as exc:
        print(exc)                   # Wrong register name!
```

* `CPU.execute(line)` returns the `Instruction` that ran and raises
  `CommandError` when the command is rejected. The interactive loop prints
  that message and carries on.
* `CPU.layout()` returns the state description as a string.
* `CPU.run(lines)` runs an interactive session over any iterable of input
  lines. It writes to the `output` stream given to the constructor, or to
  standard output if none was given.
* `analyze_command(cmd)` classifies a line by its first word.

The operand helpers are in `cpuchat.parsing`: `is_register`, `is_number`,
`parse_two_operands` and `parse_three_operands`. The last two raise
`ValueError` on malformed input.

## The chat

Start the server, then start two clients, each in its own terminal:

```
cpuchat-server [--host HOST] [--port PORT]
cpuchat-client [--host HOST] [--port PORT]
cpuchat-client [--host HOST] [--port PORT]
```

The server listens on `0.0.0.0:8080` by default. It waits for exactly two
clients and then passes the data from each one to the other. It reports
each disconnect and returns once both clients have gone. Clients connect to
`127.0.0.1:8080` by default. A client prints every relayed message and
sends each line you type. It exits when the server goes away.

`cpuchat.chat_server.ChatServer` and `relay`, and
`cpuchat.chat_client.connect`, `receive_messages` and `send_messages`, can
also be used directly.

## What it does not do

The chat server handles a single pair of clients per run. It does not
accept a third client, does not pair clients again after a disconnect, and
keeps no message history. Messages are not authenticated or encrypted.