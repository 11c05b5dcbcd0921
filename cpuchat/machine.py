"""A small register machine with a state log that can be rewound."""

from __future__ import annotations

import argparse
import enum
import os
import re
import sys
from dataclasses import dataclass, field
from typing import IO, Callable, Iterable, Optional

from .parsing import (
    WHITESPACE,
    is_number,
    is_register,
    parse_three_operands,
    parse_two_operands,
)

BUFF = 512
RAM_S = 256
POS_DFL = 392
MEMORY_FILE = "/tmp/memory.txt"
EMPTY_MEMORY = "0...0"

_INT_MIN = -(2**31)
_INT_MAX = 2**31 - 1
_CLEAR_SCREEN = "\033[H\033[2J"

_FIRST_WORD = re.compile(r"[^ \t\n\v\f\r]+")
_DISC_ARG = re.compile(r"[ \t\n\v\f\r]*[^ \t\n\v\f\r]*[ \t\n\v\f\r]*([+-]?[0-9]+)")
_RECORD = re.compile(
    rb"R0: (-?\d+) R1: (-?\d+) R2: (-?\d+) R3: (-?\d+) R4: (-?\d+) "
    rb"R5: (-?\d+) R6: (-?\d+) IP: (-?\d+) WSR: (-?\d+)\nMemory: "
)
_REGISTER_ATTRS = {f"R{i}": f"r{i}" for i in range(7)}


class Instruction(enum.Enum):
    """Opcodes understood by the machine."""

    ADD = enum.auto()
    SUB = enum.auto()
    MOV = enum.auto()
    LOAD = enum.auto()
    STORE = enum.auto()
    DISC = enum.auto()
    LAYO = enum.auto()
    EXIT = enum.auto()
    INVALID = enum.auto()


_OPCODES = {inst.name: inst for inst in Instruction if inst is not Instruction.INVALID}


class CommandError(Exception):
    """A command was rejected; the message says why."""


def analyze_command(cmd: str) -> Instruction:
    """Classify a command line by its first word."""
    match = _FIRST_WORD.search(cmd)
    word = match.group() if match else ""
    return _OPCODES.get(word, Instruction.INVALID)


def _int32(value: int) -> int:
    return (value - _INT_MIN) % 2**32 + _INT_MIN


def _c_string(data: bytes | bytearray) -> bytes:
    return bytes(data).split(b"\0", 1)[0]


@dataclass
class Registers:
    """General registers R0-R6, status, instruction pointer and RAM."""

    r0: int = 0
    r1: int = 0
    r2: int = 0
    r3: int = 0
    r4: int = 0
    r5: int = 0
    r6: int = 0
    wsr: int = 0
    ip: int = 0
    ram: bytearray = field(default_factory=lambda: bytearray(RAM_S))

    def get(self, name: str) -> int:
        """Value of a general register; 0 for any other name."""
        attr = _REGISTER_ATTRS.get(name)
        return getattr(self, attr) if attr else 0

    def set(self, name: str, value: int) -> None:
        """Assign a general register; other names are ignored."""
        attr = _REGISTER_ATTRS.get(name)
        if attr:
            setattr(self, attr, value)

    def reset(self) -> None:
        """Zero every register and clear the RAM."""
        for attr in _REGISTER_ATTRS.values():
            setattr(self, attr, 0)
        self.wsr = 0
        self.ip = 0
        self.ram[:] = bytes(RAM_S)


class CPU:
    """The machine: executes commands and logs each state to a file."""

    def __init__(self, memory_file: str | os.PathLike = MEMORY_FILE,
                 output: Optional[IO[str]] = None) -> None:
        self.memory_file = os.fspath(memory_file)
        self.registers = Registers()
        self._output = output
        self._file: Optional[IO[bytes]] = None
        self._handlers: dict[Instruction, Callable[[str], None]] = {
            Instruction.ADD: lambda line: self._arith(line, "ADD", lambda a, b: a + b),
            Instruction.SUB: lambda line: self._arith(line, "SUB", lambda a, b: a - b),
            Instruction.MOV: self._mov,
            Instruction.LOAD: self._load,
            Instruction.STORE: self._store,
            Instruction.DISC: self._disc,
            Instruction.LAYO: lambda line: self._write(self.layout()),
            Instruction.EXIT: lambda line: self._exit(),
        }

    @property
    def _out(self) -> IO[str]:
        return self._output if self._output is not None else sys.stdout

    def _write(self, text: str) -> None:
        self._out.write(text)
        self._out.flush()

    def __enter__(self) -> "CPU":
        self.open()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    def open(self) -> None:
        """Reset the registers and start a fresh memory log."""
        self.registers.reset()
        if self._file is not None:
            self._file.close()
        self._file = open(self.memory_file, "w+b")

    def close(self) -> None:
        """Close the memory log and delete its file."""
        if self._file is not None:
            self._file.close()
            self._file = None
        try:
            os.remove(self.memory_file)
        except FileNotFoundError:
            pass

    def execute(self, line: str) -> Instruction:
        """Run one command line; raise CommandError if it is rejected."""
        line = line.strip(WHITESPACE)
        inst = analyze_command(line)
        if inst is Instruction.INVALID:
            raise CommandError("Unknown or invalid command.")
        self._handlers[inst](line)
        return inst

    def layout(self) -> str:
        """Describe the registers and memory."""
        r = self.registers
        data = bytes(r.ram)
        if any(byte not in (0, 0x20) for byte in data):
            shown = _c_string(data).decode("latin-1")
        else:
            shown = EMPTY_MEMORY
        return (
            "CPU state:\n"
            f"R0: {r.r0}, R1: {r.r1}, R2: {r.r2}, R3: {r.r3}, R4: {r.r4}, "
            f"R5: {r.r5}, R6: {r.r6}, WSR: {r.wsr}, IP: {r.ip}\n\n"
            f"Memory: {{{shown}}}\n"
        )

    def run(self, lines: Iterable[str]) -> None:
        """Run an interactive session over the given input lines."""
        isatty = getattr(self._out, "isatty", None)
        if isatty is not None and isatty():
            self._write(_CLEAR_SCREEN)
        self.open()
        try:
            self._write("Initial " + self.layout())
            self.registers.wsr = 1
            source = iter(lines)
            while self.registers.wsr:
                self._write("> ")
                line = next(source, None)
                if line is None:
                    break
                try:
                    self.execute(line)
                except CommandError as exc:
                    self._write(f"{exc}\n")
        finally:
            self.close()

    # command handlers

    def _value(self, text: str) -> int:
        value = int(text)
        if value > _INT_MAX:
            raise CommandError("Number out of range.")
        return value

    def _operand(self, text: str, opcode: str) -> int:
        if is_register(text):
            return self.registers.get(text)
        if is_number(text):
            return self._value(text)
        raise CommandError(f"Invalid operand for {opcode}.")

    def _index(self, text: str, opcode: str) -> int:
        if not is_number(text):
            raise CommandError(f"Invalid index for {opcode}.")
        index = int(text)
        if index >= RAM_S:
            raise CommandError("Index out of range.")
        return index

    def _advance(self) -> None:
        self.registers.ip += 1
        self._save()

    def _arith(self, line: str, opcode: str, op: Callable[[int, int], int]) -> None:
        try:
            rd, rs, val = parse_three_operands(line)
        except ValueError:
            raise CommandError(f"Wrong syntax(example: {opcode} R1, R2, R3)") from None
        if not (is_register(rd) and is_register(rs)):
            raise CommandError("Wrong register name!")
        third = self._operand(val, opcode)
        self.registers.set(rd, _int32(op(self.registers.get(rs), third)))
        self._advance()

    def _mov(self, line: str) -> None:
        try:
            rd, val = parse_two_operands(line)
        except ValueError:
            raise CommandError("Wrong syntax(example: MOV R1, R2 or MOV R1, 45)") from None
        if not is_register(rd):
            raise CommandError("Wrong register name!")
        self.registers.set(rd, self._operand(val, "MOV"))
        self._advance()

    def _memory_operands(self, line: str, opcode: str) -> tuple[str, int]:
        try:
            rd, index_text = parse_two_operands(line)
        except ValueError:
            raise CommandError(f"Wrong syntax(example: {opcode} R1, 12)") from None
        if not is_register(rd):
            raise CommandError("Wrong register name!")
        return rd, self._index(index_text, opcode)

    def _load(self, line: str) -> None:
        rd, index = self._memory_operands(line, "LOAD")
        self.registers.ram[index] = self.registers.get(rd) & 0xFF
        self._advance()

    def _store(self, line: str) -> None:
        rd, index = self._memory_operands(line, "STORE")
        raw = self.registers.ram[index]
        self.registers.set(rd, raw - 256 if raw >= 128 else raw)
        self.registers.ram[index] = 0
        self._advance()

    def _save(self) -> None:
        r = self.registers
        r.ram[:] = r.ram.replace(b"\0", b" ")
        r.ram[-1] = 0
        if self._file is None:
            return
        header = (
            f"R0: {r.r0} R1: {r.r1} R2: {r.r2} R3: {r.r3} R4: {r.r4} R5: {r.r5} "
            f"R6: {r.r6} IP: {r.ip} WSR: {r.wsr}\nMemory: "
        ).encode("ascii")
        text = (header + _c_string(r.ram) + b"\n")[: BUFF - 1]
        record = text.ljust(POS_DFL, b"\0")[:POS_DFL]
        self._file.seek(0, os.SEEK_END)
        self._file.write(record)
        self._file.flush()

    def _disc(self, line: str) -> None:
        """Drop the last ``n`` logged states and return to the one before."""
        match = _DISC_ARG.match(line)
        if not match:
            raise CommandError("Wrong syntax(example: DISC 2)")
        count = int(match.group(1))
        if not _INT_MIN <= count <= _INT_MAX:
            raise CommandError("Wrong syntax(example: DISC 2)")
        if self._file is None:
            raise CommandError("Memory file is not open.")
        end = self._file.seek(0, os.SEEK_END)
        target = end - count * POS_DFL
        if count < 0 or target < 0:
            raise CommandError("Cannot DISC: invalid position.")
        self._file.truncate(target)
        if target < POS_DFL:
            wsr = self.registers.wsr
            self.registers.reset()
            self.registers.wsr = wsr
        else:
            self._file.seek(target - POS_DFL)
            self._restore(self._file.read(POS_DFL))
        self._file.seek(0, os.SEEK_END)

    def _restore(self, record: bytes) -> None:
        match = _RECORD.match(record)
        if not match:
            raise CommandError("Cannot DISC: corrupted memory record.")
        values = [int(group) for group in match.groups()]
        r = self.registers
        for attr, value in zip(_REGISTER_ATTRS.values(), values):
            setattr(r, attr, value)
        r.ip, r.wsr = values[7], values[8]
        memory = _c_string(record[match.end():])[: RAM_S - 1]
        r.ram[:] = memory.ljust(RAM_S - 1, b" ") + b"\0"

    def _exit(self) -> None:
        self.registers.wsr = 0
        self.close()
        self._write("You have successfully exited the simulation\n")


def main(argv: Optional[list[str]] = None) -> int:
    """Command-line entry: START runs a session, EXIT quits."""
    parser = argparse.ArgumentParser(description="Interactive register machine.")
    parser.add_argument("--memory-file", default=MEMORY_FILE,
                        help="where the state log is kept while running")
    args = parser.parse_args(argv)

    out = sys.stdout
    cpu = CPU(args.memory_file, out)
    lines = (line.rstrip("\n") for line in sys.stdin)
    out.write("Type START to begin simulation or EXIT to quit:\n")
    try:
        while True:
            out.write("> ")
            out.flush()
            command = next(lines, None)
            if command is None:
                break
            if command == "START":
                try:
                    cpu.run(lines)
                except OSError:
                    print("Error opening memory file.", file=sys.stderr)
            elif command == "EXIT":
                out.write("Terminating CPU simulator...\n")
                break
            else:
                out.write("Wrong command(START | EXIT)\n")
    finally:
        cpu.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())