"""

Board connections for visual-programming hosts

- Transport: a byte-stream link to a board. SerialTransport chooses a serial port by path,
  USB vendor/product filter or known device table, and opens it with pyserial.
- ProtocolClient: speaks Firmata over a transport and reports signals - 'open', 'ready',
  'close', 'error', 'disconnect' and per-pin samples. Supplied by the application.
- Board: the connection to one physical board. Drives the transport and protocol client
  through connect/disconnect, discards signals from transports it has since released,
  and performs debounced, deadline-guarded reads and paced writes. Pin state is kept in a
  PinStateTable.
- BoardRegistry: the boards of a session. Extensions acquire a board from the registry,
  sharing one that is already connected. Lifecycle events are forwarded to the host.
- ArduinoExtension: the commands an extension runs. Never raises to the end user.
- Session: owns the host, registry and extensions for one host session.


## Scheduling

Everything runs on one asyncio event loop. Protocol clients deliver signals on the loop
thread; blocking serial calls are made with asyncio.to_thread. Nothing is locked - a board's
generation counter filters stale signals, and a pin's updating flag keeps to one read in flight
per pin.

"""
