#!/usr/bin/env python3
"""Run one pipeline stage synchronously for testing/debugging."""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from newsprism import create_app
from newsprism.pipeline.runner import STAGES, run_stage

if __name__ == '__main__':
    if len(sys.argv) < 2 or sys.argv[1] not in STAGES:
        print(f"Usage: {sys.argv[0]} <{'|'.join(STAGES)}> [embed article id]")
        sys.exit(2)

    stage = sys.argv[1]
    app = create_app()
    with app.app_context():
        if stage == 'embed' and len(sys.argv) > 2:
            from newsprism.pipeline.embed import embed_single
            result = embed_single(int(sys.argv[2]))
        else:
            print(f"Running stage {stage}...")
            result = run_stage(stage)
        print(f"Result: {result}")
        if result is None or 'error' in result:
            sys.exit(1)
