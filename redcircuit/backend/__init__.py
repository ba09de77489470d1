"""Direct simulation backend: runtime nodes, tick scheduler and graph lowering."""