#!/usr/bin/env python3
"""
Basic AgentWar usage example.

Runs entirely in memory against a MockStore.
Run with: python examples/basic_usage.py
"""

from agentwar import AgentWarClient, AgentWarError, AuthorizationDeniedError
from agentwar.codec import decode, encode
from agentwar.signers import Ed25519Signer
from agentwar.testing import MockStore

print("=== AgentWar Basic Usage Example ===\n")

# 1. Ciphertext codec
print("1. Encoding values...")
token = encode(1000)
print(f"   encode(1000) = {token}")
print(f"   decode({token}) = {decode(token)}")

try:
    decode("FHE-not-base64!")
except AgentWarError as e:
    print(f"   Malformed token rejected: {e.code}")

print("\n   OK: Codec working\n")

# 2. Client over an in-memory store
print("2. Creating agents...")
signer, address = Ed25519Signer.generate()
store = MockStore()
client = AgentWarClient(
    store=store,
    signer=signer,
    contract_address="0x5FbDB2315678afecb367f032d93F642f64180aa3",
    chain_id=11155111,
)
print(f"   Account: {address}")

for name, balance in [("Momentum-7", 1000), ("MeanRevert", 250), ("Arb-Bot", 5000)]:
    agent = client.create_agent(name, balance, f"{name} strategy")
    print(f"   Created {agent.id} ({agent.name})")

print(f"   Index: {store.data['agent_keys'].decode()}")
print("\n   OK: Registry working\n")

# 3. Leaderboard and stats
print("3. Leaderboard...")
for entry in client.leaderboard():
    print(f"   #{entry.rank} {entry.record.name}: {entry.score}")

stats = client.stats()
print(f"   Agents: {stats.total_agents}, mine: {stats.owned_agents}, mean score: {stats.average_score}")
print("\n   OK: Leaderboard working\n")

# 4. Gated balance
print("4. Revealing a balance...")
agent = client.my_agents()[0]
print("   Challenge:")
for line in client.session.challenge_message().splitlines():
    print(f"     {line[:60]}{'...' if len(line) > 60 else ''}")

try:
    print(f"   Balance of {agent.name}: {client.decrypt_balance(agent)}")
except AuthorizationDeniedError as e:
    print(f"   Denied: {e.message}")

print("\n   OK: Decryption gate working\n")

print("=== All checks passed ===")
