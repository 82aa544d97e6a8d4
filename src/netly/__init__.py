"""
Core of Netly: session establishment and the duplex byte relay.
"""
