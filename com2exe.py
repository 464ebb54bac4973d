import argparse
import contextlib
import os
import struct

from mz_header import HEADER_SIZE, build_com_header

COPY_CHUNK_SIZE = 0x1000

EXIT_SUCCESS = 0
EXIT_USAGE = 1
EXIT_ALLOCATION = 2
EXIT_INPUT_OPEN = 3
EXIT_OUTPUT_OPEN = 4
EXIT_HEADER_WRITE = 5
EXIT_OUTPUT_WRITE = 6
EXIT_INPUT_READ = 7
EXIT_NAME_COLLISION = 8

class Com2ExeError(Exception):
    exit_code = None
    message = None

    def __init__(self, message=None):
        super().__init__(message or self.message)

class UsageError(Com2ExeError):
    exit_code = EXIT_USAGE
    message = "Usage: COM2EXE <COM file>"

class AllocationError(Com2ExeError):
    exit_code = EXIT_ALLOCATION
    message = "allocation error"

class InputOpenError(Com2ExeError):
    exit_code = EXIT_INPUT_OPEN
    message = "error opening input file"

class OutputOpenError(Com2ExeError):
    exit_code = EXIT_OUTPUT_OPEN
    message = "error opening output file"

class HeaderWriteError(Com2ExeError):
    exit_code = EXIT_HEADER_WRITE
    message = "error writing MZ header"

class OutputWriteError(Com2ExeError):
    exit_code = EXIT_OUTPUT_WRITE
    message = "error writing .EXE file"

class InputReadError(Com2ExeError):
    exit_code = EXIT_INPUT_READ
    message = "error reading .COM file"

class NameCollisionError(Com2ExeError):
    exit_code = EXIT_NAME_COLLISION
    message = "input and output file names are identical"

def derive_filenames(args):
    """Return (input name, output name) for the single command line argument.

    A name without any dot gets a .com suffix, the output name swaps
    whatever follows the last dot for exe.
    """
    if len(args) != 1:
        raise UsageError()

    try:
        in_fn = args[0]
        if "." not in in_fn:
            in_fn += ".com"
        out_fn = in_fn[:in_fn.rindex(".") + 1] + "exe"
    except MemoryError as e:
        raise AllocationError() from e

    if in_fn.lower() == out_fn.lower():
        raise NameCollisionError()

    return in_fn, out_fn

def is_executable(first_bytes):
    # either half of the signature is enough
    return len(first_bytes) == 2 and (first_bytes[0] == ord('M') or first_bytes[1] == ord('Z'))

def classify_input(in_f):
    """Return (in_size, plain_copy) and rewind in_f to the start."""
    try:
        in_size = in_f.seek(0, os.SEEK_END)
        in_f.seek(0)
        plain_copy = False
        if in_size >= 2:
            plain_copy = is_executable(in_f.read(2))
        in_f.seek(0)
    except OSError as e:
        raise InputOpenError() from e

    return in_size, plain_copy

def write_header(out_f, header):
    try:
        raw = header.pack()
        written = out_f.write(raw)
    except (struct.error, OSError) as e:
        raise HeaderWriteError() from e

    if written != HEADER_SIZE:
        raise HeaderWriteError()

def copy_stream(in_f, out_f, chunk_size=COPY_CHUNK_SIZE):
    copied = 0
    while True:
        try:
            chunk = in_f.read(chunk_size)
        except OSError as e:
            raise InputReadError() from e
        if not chunk:
            break

        try:
            written = out_f.write(chunk)
        except OSError as e:
            raise OutputWriteError() from e
        if written != len(chunk):
            raise OutputWriteError()
        copied += written

    try:
        out_f.flush()
    except OSError as e:
        raise OutputWriteError() from e

    return copied

def remove_output(out_fn):
    with contextlib.suppress(FileNotFoundError):
        os.remove(out_fn)

def convert(in_fn, out_fn):
    """Write out_fn as an .EXE built from in_fn. Returns True for a plain copy."""
    try:
        in_f = open(in_fn, "rb")
    except OSError as e:
        raise InputOpenError() from e

    with in_f:
        in_size, plain_copy = classify_input(in_f)

        try:
            out_f = open(out_fn, "wb")
        except OSError as e:
            raise OutputOpenError() from e

        # only a failed body copy takes the output file with it
        try:
            with out_f:
                if plain_copy:
                    print("%s is already an executable, copying unmodified" % in_fn)
                else:
                    write_header(out_f, build_com_header(in_size))
                copy_stream(in_f, out_f)
        except (OutputWriteError, InputReadError):
            remove_output(out_fn)
            raise

    return plain_copy

class ArgumentParser(argparse.ArgumentParser):
    def error(self, message):
        raise UsageError()

def main(argv=None):
    # file names may start with a dash, so no options are recognised
    parser = ArgumentParser(prog="COM2EXE", description="convert a DOS .COM file to an .EXE file",
                            prefix_chars="\0", add_help=False)
    parser.add_argument('files', nargs=argparse.REMAINDER, metavar='COM file')

    try:
        args = parser.parse_args(argv)
        in_fn, out_fn = derive_filenames(args.files)
        convert(in_fn, out_fn)
    except Com2ExeError as e:
        print(e)
        return e.exit_code

    return EXIT_SUCCESS

if __name__ == "__main__":
    raise SystemExit(main())
