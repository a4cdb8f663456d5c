import mage

acl = ["*"]


class A:
    name: str
    password: str
    count: int

    def __init__(self, a: str):
        self.name = a


async def execute(state: mage.core.IState, a: str) -> A:
    mage.auth.login_anonymous(state, {
        "acl": ["user"],
    })

    return A(a)
