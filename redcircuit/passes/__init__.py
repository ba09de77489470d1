"""Optimisation passes over the circuit compile graph and the manager that runs them."""