"""
Tests for credential stores and caches
"""

import threading

import pytest
import requests
from unittest.mock import Mock, patch

from digest_auth.exceptions import CredentialStoreError, UsernameNotFoundError, ValidationError
from digest_auth.verification import (
    Credential,
    CredentialCache,
    CredentialStore,
    InMemoryCredentialCache,
    InMemoryCredentialStore,
    NullCredentialCache,
    RemoteCredentialStore,
    RemoteStoreConfig,
)


def _response(status_code=200, payload=None, reason="OK"):
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    response.json.return_value = payload
    return response


class TestCredential:
    """Test credential value type"""
    
    def test_repr_hides_secret(self):
        """Test that the secret is not rendered"""
        credential = Credential("bob", "hunter2", identity={'id': 7})
        assert "hunter2" not in repr(credential)
        assert "bob" in repr(credential)
    
    def test_validation(self):
        """Test required fields"""
        with pytest.raises(ValidationError):
            Credential("", "pwd")
        with pytest.raises(ValidationError):
            Credential("bob", None)


class TestInMemoryCredentialStore:
    """Test dictionary backed store"""
    
    def test_lookup(self):
        """Test lookup of known and unknown users"""
        store = InMemoryCredentialStore([Credential("bob", "pwd")])
        
        assert store.lookup("bob").secret == "pwd"
        with pytest.raises(UsernameNotFoundError) as exc_info:
            store.lookup("alice")
        assert exc_info.value.username == "alice"
        assert exc_info.value.error_code == "USERNAME_NOT_FOUND"
    
    def test_add_and_remove(self):
        """Test mutation"""
        store = InMemoryCredentialStore()
        store.add(Credential("bob", "pwd"))
        store.add(Credential("bob", "new"))
        assert store.lookup("bob").secret == "new"
        
        store.remove("bob")
        store.remove("bob")
        with pytest.raises(UsernameNotFoundError):
            store.lookup("bob")
    
    def test_satisfies_protocol(self):
        """Test structural typing"""
        assert isinstance(InMemoryCredentialStore(), CredentialStore)


class TestCredentialCaches:
    """Test credential caches"""
    
    def test_null_cache(self):
        """Test that the null cache stores nothing"""
        cache = NullCredentialCache()
        cache.put("bob", Credential("bob", "pwd"))
        assert cache.get("bob") is None
        assert isinstance(cache, CredentialCache)
    
    def test_in_memory_cache(self):
        """Test put, get, remove and clear"""
        cache = InMemoryCredentialCache()
        cache.put("bob", Credential("bob", "pwd"))
        cache.put("alice", Credential("alice", "pwd"))
        
        assert cache.get("bob").username == "bob"
        assert len(cache) == 2
        
        cache.remove("bob")
        assert cache.get("bob") is None
        
        cache.clear()
        assert len(cache) == 0
    
    def test_eviction(self):
        """Test that the oldest insertion is evicted when full"""
        cache = InMemoryCredentialCache(max_entries=2)
        cache.put("a", Credential("a", "1"))
        cache.put("b", Credential("b", "2"))
        cache.put("a", Credential("a", "3"))
        cache.put("c", Credential("c", "4"))
        
        assert len(cache) == 2
        assert cache.get("a") is None
        assert cache.get("b").secret == "2"
        assert cache.get("c").secret == "4"
    
    def test_invalid_size(self):
        """Test size validation"""
        with pytest.raises(ValueError):
            InMemoryCredentialCache(max_entries=0)
    
    def test_concurrent_writers(self):
        """Test that concurrent puts leave a consistent cache"""
        cache = InMemoryCredentialCache(max_entries=10)
        
        def writer(prefix):
            for i in range(200):
                cache.put(f"{prefix}{i % 20}", Credential(f"{prefix}{i % 20}", str(i)))
        
        threads = [threading.Thread(target=writer, args=(p,)) for p in "abcd"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        
        assert len(cache) == 10


class TestRemoteStoreConfig:
    """Test remote store configuration"""
    
    def test_defaults(self):
        """Test URL normalization and defaults"""
        config = RemoteStoreConfig(base_url="https://users.example.com")
        assert config.base_url == "https://users.example.com/"
        assert config.users_endpoint == "api/users"
        assert config.retry_attempts == 2
    
    def test_invalid_values(self):
        """Test validation"""
        with pytest.raises(ValidationError):
            RemoteStoreConfig(base_url="")
        with pytest.raises(ValidationError):
            RemoteStoreConfig(base_url="users.example.com")
        with pytest.raises(ValidationError):
            RemoteStoreConfig(base_url="https://users.example.com", timeout=0)
        with pytest.raises(ValidationError):
            RemoteStoreConfig(base_url="https://users.example.com", retry_attempts=-1)


class TestRemoteCredentialStore:
    """Test HTTP user directory client"""
    
    def setup_method(self):
        """Set up test fixtures"""
        self.config = RemoteStoreConfig(base_url="https://users.example.com", api_token="tok")
        self.store = RemoteCredentialStore(self.config)
    
    def teardown_method(self):
        """Clean up test fixtures"""
        self.store.close()
    
    def test_session_headers(self):
        """Test that the bearer token is sent"""
        assert self.store.session.headers['Authorization'] == "Bearer tok"
        assert self.store.session.headers['Accept'] == "application/json"
    
    def test_lookup_success(self):
        """Test a successful lookup"""
        payload = {'data': {'username': 'bob', 'secret': 'pwd', 'identity': {'id': 1}}}
        
        with patch.object(self.store.session, 'get', return_value=_response(payload=payload)) as mock_get:
            credential = self.store.lookup("bob")
        
        assert credential.secret == "pwd"
        assert credential.identity == {'id': 1}
        url = mock_get.call_args[0][0]
        assert url == "https://users.example.com/api/users/bob"
        assert mock_get.call_args[1]['timeout'] == 5.0
    
    def test_username_is_quoted(self):
        """Test that usernames are path-escaped"""
        payload = {'data': {'secret': 'pwd'}}
        
        with patch.object(self.store.session, 'get', return_value=_response(payload=payload)) as mock_get:
            credential = self.store.lookup("a b/c")
        
        assert mock_get.call_args[0][0].endswith("/api/users/a%20b%2Fc")
        assert credential.username == "a b/c"
    
    def test_not_found(self):
        """Test that 404 means unknown user"""
        with patch.object(self.store.session, 'get', return_value=_response(404, reason="Not Found")):
            with pytest.raises(UsernameNotFoundError):
                self.store.lookup("bob")
    
    def test_server_error(self):
        """Test that other HTTP errors are store errors"""
        with patch.object(self.store.session, 'get', return_value=_response(503, reason="Unavailable")):
            with pytest.raises(CredentialStoreError) as exc_info:
                self.store.lookup("bob")
        assert exc_info.value.http_status == 503
        assert exc_info.value.error_code == "HTTP_ERROR"
    
    def test_empty_data_returns_none(self):
        """Test that a success without data is passed through as None"""
        with patch.object(self.store.session, 'get', return_value=_response(payload={'data': None})):
            assert self.store.lookup("bob") is None
    
    def test_missing_secret(self):
        """Test that a user without a secret is an invalid response"""
        payload = {'data': {'username': 'bob'}}
        with patch.object(self.store.session, 'get', return_value=_response(payload=payload)):
            with pytest.raises(CredentialStoreError) as exc_info:
                self.store.lookup("bob")
        assert exc_info.value.error_code == "INVALID_RESPONSE"
    
    def test_invalid_json(self):
        """Test that undecodable bodies are store errors"""
        response = _response()
        response.json.side_effect = ValueError("No JSON")
        with patch.object(self.store.session, 'get', return_value=response):
            with pytest.raises(CredentialStoreError):
                self.store.lookup("bob")
    
    @pytest.mark.parametrize("error", [
        requests.exceptions.Timeout("slow"),
        requests.exceptions.ConnectionError("refused"),
        requests.exceptions.RequestException("other"),
    ])
    def test_network_errors(self, error):
        """Test that transport failures are store errors"""
        with patch.object(self.store.session, 'get', side_effect=error):
            with pytest.raises(CredentialStoreError):
                self.store.lookup("bob")
