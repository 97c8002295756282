"""Generate a fee wallet keypair and print the FEE_WALLET_SECRET value for .env."""
from solders.keypair import Keypair
import json
import os
import sys

keypair = Keypair()
secret = json.dumps(list(bytes(keypair)), separators=(",", ":"))

# Optionally save to file (solana-keygen compatible format)
if len(sys.argv) > 1:
    out_path = os.path.abspath(sys.argv[1])
    with open(out_path, "w") as f:
        f.write(secret)
    os.chmod(out_path, 0o600)
    print(f"Keypair saved to: {out_path}")

print(f"\nFEE WALLET:")
print(f"  {keypair.pubkey()}")
print(f"\nAdd to .env:")
print(f"  FEE_WALLET_SECRET={secret}")
print(f"\nFund it before use, e.g.: solana airdrop 2 {keypair.pubkey()} --url devnet")
