"""
Benchmark frame rendering: CPU reference (Numba) vs device program (PyTorch).
"""

import logging
import time

import numpy as np

from cinegrade import DEFAULT_CATALOG, EngineConfig, RenderEngine, Surface, render_frame

logging.basicConfig(level=logging.WARNING)

WIDTH, HEIGHT = 1400, 900
NUM_ITERATIONS = 20
PRESET_ID = "royy_flash"


def bench(label: str, fn) -> float:
    # Warmup (JIT compilation, device allocation)
    for _ in range(3):
        fn()

    times = []
    for i in range(NUM_ITERATIONS):
        start = time.perf_counter()
        fn(i)
        times.append((time.perf_counter() - start) * 1000)

    mean = np.mean(times)
    print(f"  {label:<28} {mean:8.2f} ms +/- {np.std(times):.2f} ms   ({WIDTH * HEIGHT / mean / 1e3:.1f} M px/sec)")
    return mean


def main():
    print("=" * 80)
    print("FRAME RENDER BENCHMARK")
    print(f"{WIDTH}x{HEIGHT} frame, preset '{PRESET_ID}', {NUM_ITERATIONS} iterations")
    print("=" * 80)

    rng = np.random.default_rng(42)
    image = rng.integers(0, 256, size=(HEIGHT, WIDTH, 4), dtype=np.uint8)
    params = DEFAULT_CATALOG.get(PRESET_ID).params
    out = np.empty((HEIGHT, WIDTH, 4), dtype=np.float32)

    results = {}
    results["reference"] = bench(
        "render_frame (Numba)", lambda i=0: render_frame(image, params, time=i * 16.0, out=out)
    )

    for device in ("cpu", "auto"):
        with RenderEngine.create(Surface(WIDTH, HEIGHT), EngineConfig(device=device)) as engine:
            engine.load_image(image)
            label = f"RenderEngine ({engine.device})"
            results[label] = bench(label, lambda i=0: engine.render(params, time=i * 16.0))

    print("\nSpeedup vs reference:")
    for label, mean in results.items():
        if label != "reference":
            print(f"  {label:<28} {results['reference'] / mean:6.2f}x")


if __name__ == "__main__":
    main()
