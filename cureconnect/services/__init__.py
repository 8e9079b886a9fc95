# Services package: business logic, one service per aggregate
