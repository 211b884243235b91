"""
rktgate - Version Compatibility Gate for the rkt Container Runtime

Before container lifecycle operations are delegated to rkt, the gate
verifies that the host and the runtime meet minimum versions:

- systemd (host service manager)
- rkt binary (plus an advisory check against the recommended version)
- appc container-image spec supported by rkt
- rkt API service

Layout:
- service.runtime: semantic versions, providers, the gate itself
- config: version requirements and provider settings
- main: HTTP daemon; cli: command-line front end
"""

__version__ = "0.1.0"
