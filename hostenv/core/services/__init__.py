# hostenv — Services
# Pure functions shared by adapters and consumers; ports are injected
