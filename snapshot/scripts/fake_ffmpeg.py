#!/usr/bin/env python3
"""
Fake ffmpeg for running the snapshot server without a camera.

Accepts the same arguments the server passes to ffmpeg and writes a
placeholder frame to stdout. Behaviour is picked with FAKE_FFMPEG_MODE:
  ok    (default) write one frame, exit 0
  fail  write "boom" to stderr, exit 2
  hang  never exit (exercises the server's timeout)
FAKE_FFMPEG_DELAY_S adds a sleep before the frame is written.
FAKE_FFMPEG_PID_FILE, when set, receives the process id on startup.

Usage:
    FFMPEG_BIN=snapshot/scripts/fake_ffmpeg.py RTSP_URL=rtsp://fake/stream snapshot-server
"""

import argparse
import os
import sys
import time

from snapshot.adapters.process.mock_runner import placeholder_frame


def parse_args(argv):
    p = argparse.ArgumentParser(prog="fake-ffmpeg", allow_abbrev=False)
    p.add_argument("-rtsp_transport", dest="transport")
    p.add_argument("-y", dest="overwrite", action="store_true")
    p.add_argument("-i", dest="input", required=True)
    p.add_argument("-frames:v", dest="frames", type=int, default=1)
    p.add_argument("-f", dest="format")
    p.add_argument("-vcodec", dest="codec", default="mjpeg")
    p.add_argument("output")
    return p.parse_args(argv)


def main(argv=None):
    args = parse_args(sys.argv[1:] if argv is None else argv)
    mode = os.getenv("FAKE_FFMPEG_MODE", "ok")
    delay = float(os.getenv("FAKE_FFMPEG_DELAY_S", "0"))
    pid_file = os.getenv("FAKE_FFMPEG_PID_FILE")
    if pid_file:
        with open(pid_file, "w") as f:
            f.write(str(os.getpid()))

    print(f"[fake-ffmpeg] input={args.input} transport={args.transport} codec={args.codec} mode={mode}",
          file=sys.stderr)

    if mode == "hang":
        while True:
            time.sleep(60)
    if mode == "fail":
        print("boom", file=sys.stderr)
        return 2

    time.sleep(delay)
    if args.output != "pipe:1":
        print(f"[fake-ffmpeg] only pipe:1 output is supported, got {args.output}", file=sys.stderr)
        return 1
    sys.stdout.buffer.write(placeholder_frame(args.codec))
    sys.stdout.buffer.flush()
    return 0


if __name__ == "__main__":
    sys.exit(main())
