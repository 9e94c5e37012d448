# Shared utilities package: config, connections, identity, caches, errors
