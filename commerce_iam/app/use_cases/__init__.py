"""
Commerce IAM Use Cases

Import use cases from their domain packages:
    from commerce_iam.app.use_cases.auth import LoginUseCase
    from commerce_iam.app.use_cases.users import ChangeRoleUseCase
    from commerce_iam.app.use_cases.roles import DeleteRolesUseCase
"""
