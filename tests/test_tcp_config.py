from tcpwire.address import Address
from tcpwire.tcp_config import FdAdapterConfig, TCPConfig


def test_default_values():
    cfg = TCPConfig()
    assert cfg.rt_timeout == 1000
    assert cfg.recv_capacity == 64000
    assert cfg.send_capacity == 64000


def test_defaults_follow_constants():
    cfg = TCPConfig()
    assert cfg.rt_timeout == TCPConfig.TIMEOUT_DFLT
    assert cfg.recv_capacity == TCPConfig.DEFAULT_CAPACITY
    assert cfg.send_capacity == TCPConfig.DEFAULT_CAPACITY
    assert cfg.isn == 137


def test_overrides():
    cfg = TCPConfig(recv_capacity=65000, rt_timeout=10)
    assert cfg.recv_capacity == 65000
    assert cfg.rt_timeout == 10
    assert cfg.send_capacity == TCPConfig.DEFAULT_CAPACITY


def test_adapter_defaults():
    cfg = FdAdapterConfig()
    assert cfg.source == Address.from_ip("0.0.0.0", 0)
    assert cfg.destination == cfg.source
    assert cfg.source.port() == 0
    assert (cfg.loss_rate_dn, cfg.loss_rate_up) == (0, 0)


def test_adapter_instances_are_independent():
    first = FdAdapterConfig()
    first.source = Address.from_ip("10.0.0.1", 80)
    assert FdAdapterConfig().source == Address.from_ip("0.0.0.0", 0)