# Domain package: entities, repository interfaces and the pure booking rules
# shared by the server and the client
