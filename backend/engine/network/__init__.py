"""DC power flow module for GridBalance.

Flattens an editable network (substation buses, HVDC links) into a solver
graph, splits it into islands and solves the linearized flow equations per
island with a dense Gauss-Jordan solver.
"""
