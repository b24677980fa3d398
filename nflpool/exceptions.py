class PoolError(Exception):
    """Base class for pool service errors"""


class PoolNotFoundError(PoolError):
    def __init__(self, pool_id):
        self.pool_id = pool_id
        super().__init__(f"Pool {pool_id} not found")


class MemberExistsError(PoolError):
    def __init__(self, pool_id, user_id):
        self.pool_id = pool_id
        self.user_id = user_id
        super().__init__(f"User {user_id} is already a member of pool {pool_id}")
