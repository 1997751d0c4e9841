import pytest


SAMPLE_DUMP = """\
Objective-C runtime dump

@interface NSObject
Methods (3):
    - init [@16@0:8]
    - class [#16@0:8]
    - isKindOfClass: [B24@0:8#16]
@end

@interface NSString
Superclass: NSObject
Methods (4):
    - length [Q16@0:8]
    - characterAtIndex: [S24@0:8Q16]
    - doubleValue [d16@0:8]
    - rangeOfString: [{_NSRange=QQ}24@0:8@16]
Properties (1):
    @property length [TQ,R]
@end
"""


SAMPLE_TBD_V3 = """\
--- !tapi-tbd-v3
archs: [ armv7, arm64 ]
platform: ios
install-name: /System/Library/Frameworks/Foundation.framework/Foundation
exports:
  - archs: [ armv7, arm64 ]
    symbols: [ _NSLog, _NSStringFromClass, _kCFCoreFoundationVersionNumber ]
    objc-classes: [ NSObject, NSString ]
  - archs: [ arm64 ]
    symbols: [ _NSMakeRange, '$ld$hide$os9.0$_NSLog' ]
    objc-ivars: [ NSString._length ]
...
"""


@pytest.fixture
def sample_dump() -> str:
    return SAMPLE_DUMP


@pytest.fixture
def sample_tbd_v3() -> str:
    return SAMPLE_TBD_V3
