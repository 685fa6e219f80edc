import logging
import os

import numpy as np

logger = logging.getLogger(__name__)


class SnapshotWriter:
    """Per-frame writer that dumps the trail field (and optionally agents) to .npz files.

    Usage:
        sw = SnapshotWriter(output_dir)
        sw.append(frame_index, engine.field, positions=engine.population.positions)
        sw.close()

    The writer creates files named `frame_{t:06d}.npz` and an index `index.txt`
    with one `frame,filename` line per snapshot. Files are for inspection only;
    nothing here restores a simulation.
    """

    def __init__(self, out_dir):
        self.out_dir = out_dir
        os.makedirs(self.out_dir, exist_ok=True)
        self.index_path = os.path.join(self.out_dir, 'index.txt')
        # line-buffered so the index survives an interrupted run
        self._index_f = open(self.index_path, 'a', buffering=1)
        self.count = 0

    def append(self, t, field, **arrays):
        fn = os.path.join(self.out_dir, f'frame_{t:06d}.npz')
        # plain savez (uncompressed) for write speed
        np.savez(fn, field=np.asarray(field), **arrays)
        self._index_f.write(f'{t},{os.path.basename(fn)}\n')
        self.count += 1
        return fn

    def close(self):
        if not self._index_f.closed:
            self._index_f.close()
            logger.info("wrote %d snapshots to %s", self.count, self.out_dir)

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False
