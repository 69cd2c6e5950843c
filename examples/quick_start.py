"""Quick start example: build a 2D field expression and differentiate it."""

import math

import numpy as np

from pyscalarfield import Coordinate, TabulatedField, exp, sin

# Build the expression sin(x) * exp(-y) lazily
x, y = Coordinate(0, 2), Coordinate(1, 2)
f = sin(x) * exp(-y)

# Evaluate at a test point
point = [1.0, 0.5]
exact = math.sin(point[0]) * math.exp(-point[1])
value = f(point)

print(f"Expression: {f}")
print(f"Exact:  {exact:.10f}")
print(f"Lazy:   {value:.10f}")

# Gradient by central differences (step 1e-3 by default)
grad_exact = [
    math.cos(point[0]) * math.exp(-point[1]),
    -math.sin(point[0]) * math.exp(-point[1]),
]
grad = f.derive()(point)
print(f"\ngrad exact:  {grad_exact}")
print(f"grad approx: {grad.tolist()}")
print(f"grad error:  {np.max(np.abs(grad - grad_exact)):.2e}")

# Hessian
print(f"\nHessian:\n{f.derive_twice()(point)}")

# Tabulated data: one value per row, selected by forwarding a row index
weights = np.array([[0.5], [1.0], [2.0]])
g = TabulatedField(weights, 2) * f
points = np.array([[1.0, 0.5], [1.0, 0.5], [1.0, 0.5]])
print(f"\nWeighted rows: {g.evaluate_rows(points)}")
