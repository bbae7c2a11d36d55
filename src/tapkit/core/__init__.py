"""
Core package for tapkit contracts (codecs, serde, typing, constants, errors).

## Contracts
- Codec — RecordCodec protocol, PickleCodec/JsonCodec and base64 line framing.
- Serde — canonical JSON policy for structured rows.
- Typing — RegistryId and TableRow aliases.
- Constants — shard naming and writer defaults.

## Notes
- Zero-IO policy: stdlib only; no file/network IO.
- tapkit.io builds on these contracts and must remain the only layer that touches storage.
"""
